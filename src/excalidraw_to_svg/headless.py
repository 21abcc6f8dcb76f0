# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Headless document capability used by the scene renderer.

Provides the small slice of a browser document the renderer relies on:
an SVG element factory, a canvas whose 2D context draws nothing and
measures every string as zero width, and a font-face set that cannot
load fonts. The document is built once per process and passed to the
renderer explicitly.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any

from lxml import etree

from .utils import SVG_NS, svg_tag, xml_safe

logger = logging.getLogger(__name__)

_NSMAP = {None: SVG_NS}


@dataclass(frozen=True)
class TextMetrics:
    """Result of MockCanvasContext.measure_text."""

    width: float = 0.0


class MockCanvasContext:
    """2D drawing context with no-op primitives.

    Drawing calls are accepted and ignored; text measurement always
    reports zero width.
    """

    def __init__(self, canvas: "HeadlessCanvas") -> None:
        self.canvas = canvas
        self.fill_style = ""
        self.stroke_style = ""
        self.line_width = 1.0
        self.font = ""
        self.text_align = ""
        self.text_baseline = ""
        self.global_alpha = 1.0
        self.global_composite_operation = "source-over"

    def measure_text(self, text: str) -> TextMetrics:
        return TextMetrics(width=0.0)

    def get_image_data(self, *args: Any) -> dict[str, list]:
        return {"data": []}

    def create_image_data(self, *args: Any) -> dict:
        return {}

    def _noop(self, *args: Any, **kwargs: Any) -> None:
        return None

    fill_rect = clear_rect = draw_image = put_image_data = _noop
    set_transform = reset_transform = scale = rotate = translate = transform = _noop
    begin_path = close_path = move_to = line_to = _noop
    bezier_curve_to = quadratic_curve_to = arc = arc_to = rect = _noop
    fill = stroke = clip = save = restore = fill_text = stroke_text = _noop


class HeadlessCanvas:
    """Canvas element stand-in."""

    def __init__(self, width: int = 300, height: int = 150) -> None:
        self.width = width
        self.height = height

    def get_context(self, context_type: str) -> MockCanvasContext | None:
        """Returns a mock 2D context; other context types are unsupported."""
        if context_type == "2d":
            return MockCanvasContext(self)
        return None

    def to_data_url(self, *args: Any) -> str:
        return ""

    def to_blob(self, *args: Any) -> bytes:
        return b""


class HeadlessFontFaceSet:
    """Font-face set that never loads anything.

    Every load attempt is reported through the ``font-face`` diagnostic
    the converter filters out while rendering.
    """

    def load(self, font: str) -> bool:
        """Attempts to load a CSS font shorthand.

        Args:
            font: CSS font shorthand, e.g. ``'20px Excalifont'``.

        Returns:
            Always False.
        """
        logger.error(
            "Failed to load font-face for '%s': font loading is not "
            "available in a headless environment",
            font,
        )
        return False

    def check(self, font: str) -> bool:
        return False


class HeadlessDocument:
    """Minimal document: SVG element creation, canvases and fonts."""

    def __init__(self) -> None:
        self.fonts = HeadlessFontFaceSet()

    def create_element_ns(
        self,
        local_name: str,
        attrib: dict[str, str] | None = None,
        parent: etree._Element | None = None,
    ) -> etree._Element:
        """Creates an SVG element.

        Args:
            local_name: Element name without namespace (e.g. ``"rect"``).
            attrib: Optional attributes. Characters that XML cannot
                represent are dropped from the values.
            parent: Element to append the new element to. Without a
                parent a detached root carrying the SVG namespace
                declaration is created.

        Returns:
            New lxml element in the SVG namespace.
        """
        if parent is None:
            element = etree.Element(svg_tag(local_name), nsmap=_NSMAP)
        else:
            element = etree.SubElement(parent, svg_tag(local_name))
        for key, value in (attrib or {}).items():
            element.set(key, xml_safe(value))
        return element

    def create_canvas(self, width: int = 300, height: int = 150) -> HeadlessCanvas:
        return HeadlessCanvas(width, height)


@functools.cache
def get_headless_document() -> HeadlessDocument:
    """Returns the process-wide headless document."""
    logger.debug("Headless document initialized")
    return HeadlessDocument()
