# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Click-based CLI for excalidraw_to_svg.

This module provides the command-line interface for converting
Excalidraw diagrams to self-contained SVG files.
"""

# Standard Library
import json
import logging
import sys
from pathlib import Path

# Third Party
import click
from colorama import Fore, Style, init

# Local
from . import __version__
from .converter import (
    ConversionResult,
    convert_directory,
    convert_file,
    convert_to_svg,
    generate_output_path,
)
from .exceptions import ConversionError, InvalidSceneError, RenderError
from .utils import setup_logging

EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_FILE_NOT_FOUND = 2
EXIT_CONVERSION_FAILED = 3
EXIT_PERMISSION_ERROR = 5

logger = logging.getLogger(__name__)


def print_success(msg: str) -> None:
    """Prints a success message in green.

    Args:
        msg: The message to output.
    """
    click.echo(f"{Fore.GREEN}\u2713{Style.RESET_ALL} {msg}")


def print_error(msg: str) -> None:
    """Prints an error message in red.

    Args:
        msg: The error message to output.
    """
    click.echo(f"{Fore.RED}\u2717 Error:{Style.RESET_ALL} {msg}", err=True)


def print_warning(msg: str) -> None:
    """Prints a warning in yellow."""
    click.echo(f"{Fore.YELLOW}\u26a0{Style.RESET_ALL} {msg}")


def _print_result(result: ConversionResult, quiet: bool) -> None:
    """Prints one conversion result.

    Args:
        result: The conversion result.
        quiet: If True, only output errors.
    """
    if not result.success:
        print_error(f"{result.input_path.name}: {result.error}")
        return
    if quiet:
        return

    fonts = ", ".join(result.fonts_embedded) or "none"
    print_success(
        f"Converted: {result.input_path.name} -> {result.output_path.name} "
        f"({result.output_size / 1024:.1f} KB, fonts: {fonts}, "
        f"{result.processing_time:.2f}s)"
    )
    for warning in result.warnings:
        print_warning(warning)


@click.command()
@click.argument("input_path", required=False, type=click.Path(exists=True))
@click.argument("output", required=False, type=click.Path())
@click.option(
    "-r",
    "--recursive",
    is_flag=True,
    help="Process directories recursively",
)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Overwrite existing files",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Only output errors",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Detailed output",
)
@click.option(
    "--font-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory containing the font files "
    "(default: $EXCALIDRAW_TO_SVG_FONT_DIR or the bundled fonts)",
)
@click.option(
    "--stdout",
    "to_stdout",
    is_flag=True,
    help="Write the SVG to standard output instead of a file",
)
@click.option(
    "--pretty",
    is_flag=True,
    help="Indent the SVG markup",
)
@click.version_option(version=__version__)
def main(
    input_path: str | None,
    output: str | None,
    recursive: bool,
    force: bool,
    quiet: bool,
    verbose: bool,
    font_dir: str | None,
    to_stdout: bool,
    pretty: bool,
) -> None:
    """Converts Excalidraw diagrams to self-contained SVG files.

    INPUT is the path to an .excalidraw file or a directory.
    OUTPUT is optionally the output SVG path (or output directory).
    """
    # Initialize colorama for Windows compatibility
    init()

    if input_path is None:
        click.echo(click.get_current_context().get_help())
        sys.exit(EXIT_GENERAL_ERROR)

    setup_logging(verbose=verbose, quiet=quiet)

    input_path_obj = Path(input_path)

    try:
        if input_path_obj.is_file():
            if to_stdout:
                exit_code = _write_to_stdout(input_path_obj, font_dir, pretty)
            else:
                exit_code = _convert_single_file(
                    input_path_obj, output, force, quiet, font_dir, pretty
                )
        elif input_path_obj.is_dir():
            if to_stdout:
                print_error("--stdout can only be used with a single input file")
                exit_code = EXIT_GENERAL_ERROR
            else:
                exit_code = _convert_directory(
                    input_path_obj, output, force, recursive, quiet, font_dir, pretty
                )
        else:
            print_error(f"Invalid path: {input_path}")
            exit_code = EXIT_FILE_NOT_FOUND

    except FileNotFoundError as e:
        print_error(str(e))
        exit_code = EXIT_FILE_NOT_FOUND
    except PermissionError as e:
        print_error(f"Access denied: {e}")
        exit_code = EXIT_PERMISSION_ERROR
    except ConversionError as e:
        print_error(str(e))
        exit_code = EXIT_CONVERSION_FAILED
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        exit_code = EXIT_GENERAL_ERROR

    sys.exit(exit_code)


def _write_to_stdout(input_path: Path, font_dir: str | None, pretty: bool) -> int:
    """Converts a single diagram and prints the SVG markup.

    Returns:
        Exit code.
    """
    try:
        source = input_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConversionError(f"{input_path.name} is not UTF-8 text: {e}") from e
    try:
        document = convert_to_svg(source, font_dir=font_dir)
    except json.JSONDecodeError as e:
        raise ConversionError(f"Invalid JSON in {input_path.name}: {e}") from e
    except (InvalidSceneError, RenderError) as e:
        raise ConversionError(f"Cannot render {input_path.name}: {e}") from e

    click.echo(document.tostring(pretty_print=pretty), nl=not pretty)
    return EXIT_SUCCESS


def _convert_single_file(
    input_path: Path,
    output: str | None,
    force: bool,
    quiet: bool,
    font_dir: str | None,
    pretty: bool,
) -> int:
    """Converts a single Excalidraw file.

    Args:
        input_path: Path to the input diagram.
        output: Optional output path.
        force: Whether to overwrite existing files.
        quiet: Whether to only output errors.
        font_dir: Optional font assets directory.
        pretty: Whether to indent the SVG markup.

    Returns:
        Exit code.
    """
    output_path = Path(output) if output else generate_output_path(input_path)

    if output_path.exists() and not force:
        print_error(
            f"Output file already exists: {output_path}. Use --force to overwrite."
        )
        return EXIT_GENERAL_ERROR

    if not quiet:
        click.echo(f"Converting {input_path.name} -> SVG...")

    result = convert_file(
        input_path, output_path, font_dir=font_dir, pretty_print=pretty
    )
    _print_result(result, quiet)

    return EXIT_SUCCESS if result.success else EXIT_CONVERSION_FAILED


def _convert_directory(
    input_dir: Path,
    output: str | None,
    force: bool,
    recursive: bool,
    quiet: bool,
    font_dir: str | None,
    pretty: bool,
) -> int:
    """Converts all Excalidraw files in a directory.

    Args:
        input_dir: Input directory.
        output: Optional output directory.
        force: Whether to overwrite existing output files.
        recursive: Whether to process recursively.
        quiet: Whether to only output errors.
        font_dir: Optional font assets directory.
        pretty: Whether to indent the SVG markup.

    Returns:
        Exit code.
    """
    output_dir = Path(output) if output else None

    if not quiet:
        mode = "recursive" if recursive else "non-recursive"
        click.echo(f"Converting directory {input_dir} ({mode}) -> SVG...")

    results = convert_directory(
        input_dir=input_dir,
        output_dir=output_dir,
        recursive=recursive,
        show_progress=not quiet,
        font_dir=font_dir,
        force_overwrite=force,
        pretty_print=pretty,
    )

    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    if not quiet:
        click.echo()
        click.echo("Summary:")
        print_success(f"{len(successful)} file(s) successfully converted")
        for result in successful:
            for warning in result.warnings:
                print_warning(f"{result.input_path.name}: {warning}")
        if failed:
            print_error(f"{len(failed)} file(s) failed")
            for result in failed:
                click.echo(f"  - {result.input_path.name}: {result.error}", err=True)

    if failed:
        return EXIT_CONVERSION_FAILED

    return EXIT_SUCCESS


if __name__ == "__main__":
    main()
