"""Variant selection: which artifact families a run produces."""

from webencode.variants.selector import (
    GROUPS,
    NEGATABLE_NAMES,
    VARIANT_NAMES,
    Variant,
    expand_name,
    parse_inclusion_set,
    resolve_variants,
)

__all__ = [
    "GROUPS",
    "NEGATABLE_NAMES",
    "VARIANT_NAMES",
    "Variant",
    "expand_name",
    "parse_inclusion_set",
    "resolve_variants",
]
