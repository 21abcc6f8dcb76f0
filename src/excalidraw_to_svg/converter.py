# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Core logic for Excalidraw to SVG conversion."""

# Standard Library
import asyncio
import contextlib
import json
import logging
import os
import re
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Third Party
from tqdm import tqdm

# Local
from .document import SVGDocument
from .exceptions import ConversionError, InvalidSceneError, RenderError
from .fonts import FontEmbedder
from .headless import get_headless_document
from .renderer import SceneRenderer
from .scene import Scene, parse_scene

logger = logging.getLogger(__name__)

# Loggers whose font-face diagnostics are dropped while rendering
_FONT_DIAGNOSTIC_LOGGERS = ("excalidraw_to_svg.headless", "excalidraw_to_svg.renderer")

_FONT_FAMILY_RE = re.compile(r'font-family:\s*"([^"]+)"')

_renderer: SceneRenderer | None = None
_renderer_lock = threading.Lock()


def get_renderer() -> SceneRenderer:
    """Returns the process-wide scene renderer, creating it on first use."""
    global _renderer
    if _renderer is None:
        with _renderer_lock:
            if _renderer is None:
                _renderer = SceneRenderer(get_headless_document())
                logger.debug("Scene renderer initialized")
    return _renderer


class _FontFaceDiagnosticFilter(logging.Filter):
    """Drops records mentioning font-face; everything else passes."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "font-face" not in record.getMessage()


@contextlib.contextmanager
def suppress_font_face_diagnostics() -> Iterator[None]:
    """Silences font-face diagnostics from the renderer for the block.

    Fonts are embedded after rendering, so the renderer's failed
    font-face loads are expected. The filter is removed on exit, also
    when the block raises.
    """
    log_filter = _FontFaceDiagnosticFilter()
    loggers = [logging.getLogger(name) for name in _FONT_DIAGNOSTIC_LOGGERS]
    for diagnostic_logger in loggers:
        diagnostic_logger.addFilter(log_filter)
    try:
        yield
    finally:
        for diagnostic_logger in loggers:
            diagnostic_logger.removeFilter(log_filter)


async def excalidraw_to_svg(
    diagram: "str | bytes | Mapping[str, Any] | Scene",
    *,
    font_dir: str | os.PathLike | None = None,
) -> SVGDocument:
    """Converts an Excalidraw diagram to a self-contained SVG.

    Fonts used by text elements are subsetted to the characters drawn
    and embedded as base64 ``@font-face`` rules.

    Args:
        diagram: Excalidraw JSON text, a decoded mapping, or a Scene.
        font_dir: Optional font assets directory override.

    Returns:
        The rendered SVGDocument.

    Raises:
        json.JSONDecodeError: If the diagram text is not valid JSON.
        InvalidSceneError: If the diagram has the wrong structure.
        RenderError: If the renderer rejects the scene data.
    """
    scene = parse_scene(diagram)
    renderer = get_renderer()

    with suppress_font_face_diagnostics():
        svg = await renderer.export_to_svg(
            scene.elements,
            scene.app_state,
            scene.files,
            skip_inlining_fonts=True,
        )

    await FontEmbedder(font_dir).embed_fonts(svg)
    return SVGDocument(svg)


def convert_to_svg(
    diagram: "str | bytes | Mapping[str, Any] | Scene",
    *,
    font_dir: str | os.PathLike | None = None,
) -> SVGDocument:
    """Synchronous wrapper around excalidraw_to_svg.

    Must not be called from a running event loop.
    """
    return asyncio.run(excalidraw_to_svg(diagram, font_dir=font_dir))


@dataclass
class ConversionResult:
    """Result of an Excalidraw to SVG file conversion.

    Attributes:
        success: True if the conversion was successful.
        input_path: Path to the input diagram.
        output_path: Path to the output SVG.
        fonts_embedded: Font families embedded in the output.
        warnings: List of warnings during conversion.
        processing_time: Processing time in seconds.
        output_size: Size of the written SVG in bytes.
        error: Error message if success=False.
    """

    success: bool
    input_path: Path
    output_path: Path
    fonts_embedded: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    processing_time: float = 0.0
    output_size: int = 0
    error: str | None = None


def generate_output_path(
    input_path: Path,
    output_dir: Path | None = None,
) -> Path:
    """Generates the output path for a converted diagram.

    Args:
        input_path: Path to the input diagram.
        output_dir: Optional output directory.

    Returns:
        Path for the output SVG.
    """
    output_name = f"{input_path.stem}.svg"
    if output_dir is not None:
        return output_dir / output_name
    return input_path.parent / output_name


def convert_file(
    input_path: Path,
    output_path: Path,
    *,
    font_dir: str | os.PathLike | None = None,
    pretty_print: bool = False,
) -> ConversionResult:
    """Converts an Excalidraw file to an SVG file.

    Args:
        input_path: Path to the ``.excalidraw`` JSON file.
        output_path: Path for the output SVG.
        font_dir: Optional font assets directory override.
        pretty_print: If True, the SVG is indented.

    Returns:
        ConversionResult with status and details.

    Raises:
        FileNotFoundError: If the input file does not exist.
        ConversionError: If the diagram cannot be parsed or rendered.
    """
    start_time = time.perf_counter()
    logger.info("Starting conversion: %s -> %s", input_path, output_path)

    try:
        source = input_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConversionError(f"{input_path.name} is not UTF-8 text: {e}") from e
    try:
        scene = parse_scene(source)
        document = convert_to_svg(scene, font_dir=font_dir)
    except json.JSONDecodeError as e:
        raise ConversionError(f"Invalid JSON in {input_path.name}: {e}") from e
    except (InvalidSceneError, RenderError) as e:
        raise ConversionError(f"Cannot render {input_path.name}: {e}") from e

    fonts_embedded = [
        match.group(1)
        for rule in document.font_face_rules
        if (match := _FONT_FAMILY_RE.search(rule))
    ]
    warnings: list[str] = []
    has_text = any(el.get("type") == "text" for el in scene.visible_elements)
    if has_text and not fonts_embedded:
        warnings.append("Text present but no fonts embedded (font files missing?)")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    document.save(output_path, pretty_print=pretty_print)
    output_size = output_path.stat().st_size
    processing_time = time.perf_counter() - start_time

    logger.info(
        "Conversion completed: %s (%d bytes, %.2fs)",
        output_path,
        output_size,
        processing_time,
    )
    return ConversionResult(
        success=True,
        input_path=input_path,
        output_path=output_path,
        fonts_embedded=fonts_embedded,
        warnings=warnings,
        processing_time=processing_time,
        output_size=output_size,
    )


def convert_files(
    file_pairs: list[tuple[Path, Path]],
    *,
    font_dir: str | os.PathLike | None = None,
    force_overwrite: bool = False,
    pretty_print: bool = False,
    on_progress: Callable[[int, int, str], None] | None = None,
) -> list[ConversionResult]:
    """Converts a list of Excalidraw files to SVG.

    Shared base for convert_directory().

    Args:
        file_pairs: List of (input_path, output_path) tuples.
        font_dir: Optional font assets directory override.
        force_overwrite: If True, existing output files are overwritten.
            If False, existing outputs are skipped with an error result.
        pretty_print: If True, the SVGs are indented.
        on_progress: Optional callback(current_idx, total, filename) called
            before each file.

    Returns:
        List of ConversionResult for all processed files.
    """
    results: list[ConversionResult] = []
    total = len(file_pairs)

    for idx, (input_path, output_path) in enumerate(file_pairs):
        if on_progress is not None:
            on_progress(idx, total, input_path.name)

        # Overwrite protection
        if output_path.exists() and not force_overwrite:
            logger.warning(
                "Skipping %s: Output file already exists (%s)",
                input_path.name,
                output_path,
            )
            results.append(
                ConversionResult(
                    success=False,
                    input_path=input_path,
                    output_path=output_path,
                    error="Output file already exists",
                )
            )
            continue

        try:
            results.append(
                convert_file(
                    input_path,
                    output_path,
                    font_dir=font_dir,
                    pretty_print=pretty_print,
                )
            )
        except (ConversionError, OSError) as e:
            logger.error("Error for %s: %s", input_path.name, e)
            results.append(
                ConversionResult(
                    success=False,
                    input_path=input_path,
                    output_path=output_path,
                    error=str(e),
                )
            )

    return results


def convert_directory(
    input_dir: Path,
    output_dir: Path | None = None,
    *,
    recursive: bool = False,
    show_progress: bool = True,
    font_dir: str | os.PathLike | None = None,
    force_overwrite: bool = False,
    pretty_print: bool = False,
) -> list[ConversionResult]:
    """Converts all ``.excalidraw`` files in a directory to SVG.

    Args:
        input_dir: Input directory with Excalidraw files.
        output_dir: Optional output directory. If None, files are saved
            in the same directory as the input.
        recursive: If True, subdirectories are included.
        show_progress: If True, a progress bar is shown.
        font_dir: Optional font assets directory override.
        force_overwrite: If True, existing output files are overwritten.
        pretty_print: If True, the SVGs are indented.

    Returns:
        List of ConversionResult for all processed files.

    Raises:
        ConversionError: If the input directory does not exist.
    """
    if not input_dir.is_dir():
        raise ConversionError(f"Directory does not exist: {input_dir}")

    pattern = "**/*.excalidraw" if recursive else "*.excalidraw"
    diagram_files = sorted(input_dir.glob(pattern))

    if not diagram_files:
        logger.warning("No Excalidraw files found in: %s", input_dir)
        return []

    logger.info(
        "Found: %d Excalidraw file(s) in %s%s",
        len(diagram_files),
        input_dir,
        " (recursive)" if recursive else "",
    )

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)

    # Compute file pairs (input, output)
    file_pairs: list[tuple[Path, Path]] = []
    for diagram_file in diagram_files:
        if output_dir is not None and recursive:
            rel_path = diagram_file.relative_to(input_dir)
            out_path = output_dir / rel_path.parent / f"{diagram_file.stem}.svg"
        else:
            out_path = generate_output_path(diagram_file, output_dir)
        file_pairs.append((diagram_file, out_path))

    # tqdm progress wrapper
    progress_bar = None
    if show_progress:
        progress_bar = tqdm(
            total=len(file_pairs),
            desc="Converting",
            unit="file",
            ncols=80,
        )

    def _on_progress(current_idx: int, total: int, filename: str) -> None:
        if progress_bar is not None:
            progress_bar.update(1)
            progress_bar.set_postfix_str(filename)

    results = convert_files(
        file_pairs=file_pairs,
        font_dir=font_dir,
        force_overwrite=force_overwrite,
        pretty_print=pretty_print,
        on_progress=_on_progress if show_progress else None,
    )

    if progress_bar is not None:
        progress_bar.close()

    # Log summary
    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    logger.info(
        "Directory conversion completed: %d successful, %d failed",
        successful,
        failed,
    )

    return results
