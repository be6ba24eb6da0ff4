"""Click-based CLI interface for see-the-code."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from . import __version__
from .codemap_logging import setup_logging
from .config import INTERACTION_MODES, ConfigLoader, SeeTheCodeConfig
from .errors import CLIError, ConfigFileError, ErrorCategory, PlaywrightMissingError
from .generator import CodeMapGenerator
from .reporter import CLIReporter
from .storage import dumps_code_map, save_code_map
from .validator import CodeMapValidator


def common_options(f: Any) -> Any:
    """Common options for all commands."""
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")(f)
    f = click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")(f)
    f = click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False),
        help="Configuration file path",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False),
        help="Also write a rotating debug log to this file",
    )(f)
    f = click.option(
        "--log-format",
        type=click.Choice(["text", "json"]),
        default="text",
        help="Log file format",
    )(f)
    return f


def _fail(error: CLIError) -> NoReturn:
    click.echo(error.format(use_color=sys.stderr.isatty()), err=True)
    sys.exit(error.exit_code)


def _prepare(
    verbose: bool,
    quiet: bool,
    config_path: str | None,
    log_file: str | None = None,
    log_format: str = "text",
) -> SeeTheCodeConfig:
    """Configure logging and load the configuration for a command."""
    if quiet and verbose:
        click.echo("Error: --quiet and --verbose are mutually exclusive", err=True)
        sys.exit(1)

    setup_logging(
        quiet=quiet,
        verbose=verbose,
        log_file=Path(log_file) if log_file else None,
        log_format=log_format,
    )

    loader = ConfigLoader(Path.cwd())
    try:
        return loader.load(Path(config_path) if config_path else None)
    except (OSError, json.JSONDecodeError) as e:
        _fail(ConfigFileError(config_path or "<environment>", str(e)))


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """See the code - link rendered UI elements back to their source lines."""


@cli.command()
@common_options
@click.option(
    "--input",
    "-i",
    "inputs",
    multiple=True,
    type=click.Path(),
    help="Input directory or file (repeatable)",
)
@click.option("--output", "-o", type=click.Path(), help="Output code map file")
@click.option("--dry-run", is_flag=True, help="Print the code map instead of writing it")
@click.option("--hash", "include_hashes", is_flag=True, help="Add a fingerprint to each record")
@click.option("--inner-text", is_flag=True, help="Record static element text for matching")
@click.option("--workers", type=click.IntRange(min=1), help="Parallel extraction processes")
def generate(
    verbose: bool,
    quiet: bool,
    config_path: str | None,
    log_file: str | None,
    log_format: str,
    inputs: tuple[str, ...],
    output: str | None,
    dry_run: bool,
    include_hashes: bool,
    inner_text: bool,
    workers: int | None,
) -> None:
    """Generate a code map from component sources."""
    config = _prepare(verbose, quiet, config_path, log_file, log_format).generate

    if inputs:
        config.input = list(inputs)
    if output:
        config.output = output
    if include_hashes:
        config.options.include_hashes = True
    if inner_text:
        config.options.include_inner_text = True
    if workers:
        config.workers = workers
    if verbose:
        config.verbose = True

    base = Path.cwd()
    result = CodeMapGenerator(config, base).generate()

    written: str | None = None
    if dry_run:
        click.echo(dumps_code_map(result.code_map), nl=False)
    else:
        output_path = config.resolved_output(base)
        try:
            save_code_map(result.code_map, output_path)
        except OSError as e:
            _fail(
                CLIError(
                    category=ErrorCategory.FILE_SYSTEM,
                    message=f"Cannot write code map to {output_path}: {e}",
                    suggestion="Check that the output directory is writable",
                )
            )
        written = str(output_path)

    if not quiet:
        CLIReporter(sys.stderr).report_generation(result, written)


@cli.command()
@click.argument("file", default="./code-map.json", type=click.Path())
@click.option(
    "--workspace",
    "-w",
    default=".",
    type=click.Path(file_okay=False),
    help="Workspace root record paths are relative to",
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def validate(file: str, workspace: str, as_json: bool, verbose: bool) -> None:
    """Validate a code map against the files it references."""
    setup_logging(verbose=verbose)

    validator = CodeMapValidator(Path(workspace))
    try:
        result = validator.validate_file(Path(file))
    except CLIError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        CLIReporter(sys.stdout).report_validation(result)
    sys.exit(result.exit_code)


cli.add_command(validate, name="test")


@cli.command()
@common_options
@click.argument("source")
@click.option("--code-map", "code_map", help="Code map path or URL")
@click.option("--output", "-o", type=click.Path(), help="Annotated HTML output file")
@click.option(
    "--mode",
    type=click.Choice(INTERACTION_MODES),
    help="Marker interaction mode",
)
@click.option("--debug", is_flag=True, help="Highlight unmatched elements")
@click.option("--no-fuzzy", is_flag=True, help="Disable fuzzy class/id matching")
@click.option("--no-inner-text", is_flag=True, help="Disable text matching")
def annotate(
    verbose: bool,
    quiet: bool,
    config_path: str | None,
    log_file: str | None,
    log_format: str,
    source: str,
    code_map: str | None,
    output: str | None,
    mode: str | None,
    debug: bool,
    no_fuzzy: bool,
    no_inner_text: bool,
) -> None:
    """Annotate an HTML file or live page with source markers."""
    from .runtime.browser import capture_page
    from .runtime.document import parse_document
    from .runtime.loader import is_remote
    from .runtime.overlay import OverlayController

    overlay_config = _prepare(verbose, quiet, config_path, log_file, log_format).overlay
    if code_map:
        overlay_config.code_map_url = code_map
    if mode:
        overlay_config.interaction_mode = mode
    if debug:
        overlay_config.enable_debug = True
    if no_fuzzy:
        overlay_config.enable_fuzzy_matching = False
    if no_inner_text:
        overlay_config.enable_inner_text_fallback = False
    overlay_config.open_in_editor = False

    if is_remote(source):
        try:
            markup = asyncio.run(capture_page(source, overlay_config.namespace))
        except ImportError:
            _fail(PlaywrightMissingError())
    else:
        try:
            markup = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            _fail(
                CLIError(
                    category=ErrorCategory.FILE_SYSTEM,
                    message=f"Cannot read {source}: {e}",
                )
            )

    document = parse_document(markup)
    controller = OverlayController(document, overlay_config, base_path=Path.cwd())
    if not asyncio.run(controller.init()):
        _fail(
            CLIError(
                category=ErrorCategory.CONFIGURATION,
                message=f"Code map not loaded from {overlay_config.code_map_url}",
                suggestion="Pass --code-map or generate one with: see-the-code generate",
            )
        )
    controller.close()

    annotated = str(document)
    if output:
        Path(output).write_text(annotated, encoding="utf-8")
    else:
        click.echo(annotated)

    if not quiet:
        CLIReporter(sys.stderr).report_matches(
            controller.matched_elements, controller.get_stats()["totalSelectors"]
        )


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
