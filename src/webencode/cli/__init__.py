"""Command-line entry point for webencode."""

from __future__ import annotations

import logging
import signal
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from webencode.cli.exit_codes import ExitCode
from webencode.cli.output import ProgressPrinter, error_exit, warning_output
from webencode.config import ConfigSource, WebencodeConfig, get_config
from webencode.exceptions import (
    ConfigurationError,
    InputNotFoundError,
    ToolNotFoundError,
    WebencodeError,
)
from webencode.jobs.engine import ExecutionEngine
from webencode.jobs.models import RunResult
from webencode.jobs.runner import run_pipeline
from webencode.logging import configure_logging
from webencode.reports import build_report, build_report_json
from webencode.variants import NEGATABLE_NAMES, resolve_variants

logger = logging.getLogger(__name__)


def _negation_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add one --no-<name> flag per negatable variant or group."""
    for name in reversed(NEGATABLE_NAMES):
        func = click.option(
            f"--no-{name}",
            f"no_{name}",
            is_flag=True,
            default=False,
            help=f"Do not generate {name}.",
        )(func)
    return func


def _load_config(
    config_path: Path | None,
    max_parallel: int | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> WebencodeConfig:
    cli_source = ConfigSource(
        max_parallel=max_parallel,
        logging_level=log_level,
        logging_file=log_file,
        logging_format="json" if log_json else None,
    )
    return get_config(config_path=config_path, cli=cli_source)


def _exit_for_result(result: RunResult, json_output: bool) -> None:
    if json_output:
        click.echo(build_report_json(result))
    else:
        click.echo(build_report(result))

    if result.success:
        return

    if not json_output:
        click.echo(
            f"Cleanup: output directory {result.run.output_dir} was removed.",
            err=True,
        )
    code = ExitCode.INTERRUPTED if result.cancelled else ExitCode.OPERATION_FAILED
    error_exit(result.error or "Run did not complete", code, json_output)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="webencode")
@click.argument(
    "input_path",
    metavar="INPUT",
    type=click.Path(path_type=Path, dir_okay=False),
)
@click.option(
    "--variants",
    "variants",
    default=None,
    metavar="[NAME,...]",
    help=(
        "Generate only these variants: webm, h265, h264, 720, 480, 360, hls, "
        "dash, posters, or the groups mp4 and all. Default: everything."
    ),
)
@_negation_options
@click.option(
    "--strict-variants",
    is_flag=True,
    default=False,
    help="Treat unknown names in --variants as an error.",
)
@click.option(
    "--max-parallel",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of concurrent ffmpeg processes (default: CPU count).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.config/webencode/config.toml).",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    default=False,
    help="Print the run report as JSON.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
def main(
    input_path: Path,
    variants: str | None,
    strict_variants: bool,
    max_parallel: int | None,
    config_path: Path | None,
    json_output: bool,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    **negation_flags: bool,
) -> None:
    """Encode INPUT into web video variants, streaming packages and posters.

    Artifacts are written to a new directory next to INPUT named after it
    (clip.mp4 -> clip/). If any job fails the directory is removed.

    \b
    Examples:
        webencode clip.mp4
        webencode --variants=[webm,posters] clip.mp4
        webencode --no-hls --no-dash clip.mp4
    """
    try:
        config = _load_config(config_path, max_parallel, log_level, log_file, log_json)
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)

    configure_logging(config.logging, progress_on_stderr=True)

    negations = [name for name in NEGATABLE_NAMES if negation_flags.get(f"no_{name}")]
    try:
        enabled = resolve_variants(variants, negations, strict=strict_variants)
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)

    if not any(enabled.values()):
        warning_output("No variants selected; nothing will be generated", json_output)

    engine = ExecutionEngine.from_config(config.execution, observer=ProgressPrinter())

    def _handle_sigterm(signum: int, frame: object) -> None:
        logger.warning("Received SIGTERM, cancelling run")
        engine.cancel()

    previous_handler = signal.signal(signal.SIGTERM, _handle_sigterm)
    try:
        result = run_pipeline(input_path, enabled, config, engine=engine)
    except InputNotFoundError as e:
        error_exit(str(e), ExitCode.TARGET_NOT_FOUND, json_output)
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)
    except ToolNotFoundError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)
    except KeyboardInterrupt:
        error_exit("Interrupted, nothing was kept", ExitCode.INTERRUPTED, json_output)
    except OSError as e:
        error_exit(
            f"Could not prepare output: {e}", ExitCode.OPERATION_FAILED, json_output
        )
    except (WebencodeError, RuntimeError) as e:
        logger.exception("Run aborted")
        error_exit(
            f"Run aborted, no output was kept: {e}",
            ExitCode.GENERAL_ERROR,
            json_output,
        )
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    _exit_for_result(result, json_output)
