"""Variant selector.

Resolves the --variants inclusion set and --no-<variant> negations into a
complete, read-only variant -> enabled mapping.

Resolution order:
1. Every variant starts enabled.
2. An inclusion set, if given, disables everything and then enables exactly
   the named variants ("mp4" and "all" expand to groups).
3. Negations are applied last and always win.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType

from webencode.exceptions import UnknownVariantError

logger = logging.getLogger(__name__)


class Variant(Enum):
    """Selectable artifact families, valued by their command-line name."""

    WEBM = "webm"
    H265 = "h265"
    H264 = "h264"
    H264_720 = "720"
    H264_480 = "480"
    H264_360 = "360"
    HLS = "hls"
    DASH = "dash"
    POSTERS = "posters"


GROUPS: Mapping[str, tuple[Variant, ...]] = MappingProxyType(
    {
        "mp4": (
            Variant.H265,
            Variant.H264,
            Variant.H264_720,
            Variant.H264_480,
            Variant.H264_360,
        ),
        "all": tuple(Variant),
    }
)

VARIANT_NAMES: tuple[str, ...] = tuple(v.value for v in Variant)

# Names accepted by --no-<name>; "all" has no negation
NEGATABLE_NAMES: tuple[str, ...] = VARIANT_NAMES + ("mp4",)


def expand_name(name: str) -> tuple[Variant, ...] | None:
    """Expand a variant or group name.

    Args:
        name: Command-line name, case-insensitive.

    Returns:
        The variants the name stands for, or None if the name is unknown.
    """
    key = name.strip().casefold()
    if key in GROUPS:
        return GROUPS[key]
    try:
        return (Variant(key),)
    except ValueError:
        return None


def parse_inclusion_set(token: str) -> list[str]:
    """Split an inclusion-set token into names.

    Accepts "[webm,h265]", "webm,h265" and "webm, h265".

    Args:
        token: Raw --variants value.

    Returns:
        Lower-cased names in the order given, empty entries dropped.
    """
    stripped = token.strip()
    if stripped.startswith("["):
        stripped = stripped[1:]
    if stripped.endswith("]"):
        stripped = stripped[:-1]
    return [part.strip().casefold() for part in stripped.split(",") if part.strip()]


def resolve_variants(
    inclusion_set: str | None = None,
    negations: Iterable[str] = (),
    strict: bool = False,
) -> Mapping[Variant, bool]:
    """Resolve variant flags into the final enabled mapping.

    Args:
        inclusion_set: Raw --variants value, or None when not given.
        negations: Names from --no-<name> flags.
        strict: If True, unknown inclusion-set names raise instead of being
            ignored.

    Returns:
        Read-only mapping with exactly one entry per Variant.

    Raises:
        UnknownVariantError: For an unknown negation name, or an unknown
            inclusion-set name when strict is set.
    """
    enabled = dict.fromkeys(Variant, True)

    if inclusion_set is not None:
        enabled = dict.fromkeys(Variant, False)
        unknown: list[str] = []
        for name in parse_inclusion_set(inclusion_set):
            variants = expand_name(name)
            if variants is None:
                unknown.append(name)
                continue
            for variant in variants:
                enabled[variant] = True

        if unknown:
            if strict:
                raise UnknownVariantError(unknown)
            logger.warning("Ignoring unknown variant name(s): %s", ", ".join(unknown))

    for name in negations:
        variants = expand_name(name)
        if variants is None or name.strip().casefold() == "all":
            raise UnknownVariantError([name])
        for variant in variants:
            enabled[variant] = False

    return MappingProxyType(enabled)
