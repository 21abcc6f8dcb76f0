# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Scene rendering to SVG.

Turns Excalidraw elements into an lxml SVG tree using plain (non
hand-drawn) geometry. Element creation, text measurement and font
loading go through an injected HeadlessDocument, so the renderer never
touches global state.

Layout of the produced tree::

    <svg viewBox="0 0 W H" width="W" height="H">
      <!-- svg-source:excalidraw -->
      <defs><style class="style-fonts"/></defs>
      <rect .../>                 (background, optional)
      <g transform="...">...</g>  (one group per element)
    </svg>
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from lxml import etree

from .exceptions import RenderError
from .fonts.constants import (
    CJK_FALLBACK_FAMILY,
    DEFAULT_FONT_FAMILY_ID,
    DEFAULT_LINE_HEIGHT,
    EMOJI_FALLBACK_FAMILY,
    FONT_FAMILY_IDS,
    FONT_METRICS,
    HAND_DRAWN_FAMILIES,
)
from .headless import HeadlessDocument
from .utils import format_number as _fmt
from .utils import xml_safe

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_PADDING = 10
DEFAULT_STROKE_COLOR = "#1e1e1e"
DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_FONT_SIZE = 20
FRAME_STROKE_COLOR = "#bbb"

LINEAR_TYPES = frozenset({"line", "arrow"})
POINT_TYPES = LINEAR_TYPES | {"freedraw"}

# Roundness types: 2 = proportional, 3 = adaptive
_PROPORTIONAL_RADIUS = 0.25
_DEFAULT_ADAPTIVE_RADIUS = 32

# Arrowhead type -> (size, wing angle in degrees)
_ARROWHEADS: dict[str, tuple[float, float]] = {
    "arrow": (25, 20),
    "bar": (15, 90),
    "dot": (15, 0),
    "circle": (15, 0),
    "circle_outline": (15, 0),
    "triangle": (15, 25),
    "triangle_outline": (15, 25),
    "diamond": (12, 25),
    "diamond_outline": (12, 25),
}

_RTL_RE = re.compile(
    r"^[^A-Za-z\u00C0-\u024F]*[\u0591-\u07FF\uFB1D-\uFDFD\uFE70-\uFEFC]"
)


def get_font_family_string(font_family_id: Any) -> str:
    """Builds the CSS font-family list for an Excalidraw font id.

    Args:
        font_family_id: Numeric ``fontFamily`` value of a text element.

    Returns:
        Comma-separated family list, e.g. ``"Comic Shanns, Segoe UI Emoji"``.

    Raises:
        RenderError: If the id is neither None nor a number.
    """
    if font_family_id is not None and (
        isinstance(font_family_id, bool) or not isinstance(font_family_id, (int, float))
    ):
        raise RenderError(f"Invalid fontFamily: {font_family_id!r}")
    family = FONT_FAMILY_IDS.get(font_family_id)
    if family is None:
        family = FONT_FAMILY_IDS[DEFAULT_FONT_FAMILY_ID]
    fallbacks = [EMOJI_FALLBACK_FAMILY]
    if family in HAND_DRAWN_FAMILIES:
        fallbacks.insert(0, CJK_FALLBACK_FAMILY)
    return ", ".join([family, *fallbacks])


def get_vertical_offset(family: str, font_size: float, line_height_px: float) -> float:
    """Distance from the top of a text line box to its alphabetic baseline."""
    units_per_em, ascender, descender = FONT_METRICS.get(
        family, FONT_METRICS["Helvetica"]
    )
    font_size_em = font_size / units_per_em
    line_gap = line_height_px - font_size_em * ascender + font_size_em * descender
    return font_size_em * ascender + line_gap / 2


def _number(element: Mapping[str, Any], key: str, default: float | None = None) -> float:
    """Reads a finite numeric attribute from an element.

    Raises:
        RenderError: If the value is missing without a default, or is not a
            finite number.
    """
    value = element.get(key, default)
    if value is None:
        value = default
    if value is None:
        raise RenderError(f"Element {element.get('id')!r} is missing '{key}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RenderError(
            f"Element {element.get('id')!r} has non-numeric '{key}': {value!r}"
        )
    if not math.isfinite(value):
        raise RenderError(f"Element {element.get('id')!r} has non-finite '{key}'")
    return float(value)


def _points(element: Mapping[str, Any]) -> list[tuple[float, float]]:
    """Reads the relative point list of a linear or freedraw element."""
    raw_points = element.get("points") or [[0, 0]]
    if not isinstance(raw_points, list):
        raise RenderError(f"Element {element.get('id')!r} has invalid 'points'")
    points = []
    for point in raw_points:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            raise RenderError(f"Element {element.get('id')!r} has invalid point {point!r}")
        points.append(
            (_number({"x": point[0]}, "x"), _number({"y": point[1]}, "y"))
        )
    return points


def _rotate(x: float, y: float, cx: float, cy: float, angle: float) -> tuple[float, float]:
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = x - cx
    dy = y - cy
    return cx + dx * cos_a - dy * sin_a, cy + dx * sin_a + dy * cos_a


def _local_box(element: Mapping[str, Any]) -> tuple[float, float, float, float]:
    """Element box in its own coordinate space: (min_x, min_y, max_x, max_y)."""
    if element.get("type") in POINT_TYPES:
        points = _points(element)
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return min(xs), min(ys), max(xs), max(ys)
    width = abs(_number(element, "width", 0))
    height = abs(_number(element, "height", 0))
    return 0.0, 0.0, width, height


def get_element_bounds(element: Mapping[str, Any]) -> tuple[float, float, float, float]:
    """Scene-space bounds of an element, including rotation.

    Returns:
        (min_x, min_y, max_x, max_y).
    """
    x = _number(element, "x")
    y = _number(element, "y")
    angle = _number(element, "angle", 0)
    x1, y1, x2, y2 = _local_box(element)
    cx = (x1 + x2) / 2
    cy = (y1 + y2) / 2
    corners = [
        _rotate(px, py, cx, cy, angle) for px, py in ((x1, y1), (x2, y1), (x2, y2), (x1, y2))
    ]
    xs = [x + px for px, _ in corners]
    ys = [y + py for _, py in corners]
    return min(xs), min(ys), max(xs), max(ys)


def get_common_bounds(
    elements: Iterable[Mapping[str, Any]],
) -> tuple[float, float, float, float] | None:
    """Union of the bounds of all elements, or None for an empty scene."""
    bounds = [get_element_bounds(el) for el in elements]
    if not bounds:
        return None
    return (
        min(b[0] for b in bounds),
        min(b[1] for b in bounds),
        max(b[2] for b in bounds),
        max(b[3] for b in bounds),
    )


def _path_data(points: list[tuple[float, float]]) -> str:
    head, *rest = points
    parts = [f"M{_fmt(head[0])} {_fmt(head[1])}"]
    parts.extend(f"L{_fmt(px)} {_fmt(py)}" for px, py in rest)
    return " ".join(parts)


def _fill_color(color: Any) -> str:
    if not color or color == "transparent":
        return "none"
    return str(color)


class SceneRenderer:
    """Renders Excalidraw scene elements into an SVG tree."""

    def __init__(self, document: HeadlessDocument) -> None:
        """Initializes the SceneRenderer.

        Args:
            document: Headless document used for element creation, text
                measurement and font loading.
        """
        self._document = document
        self._context = document.create_canvas().get_context("2d")

    async def export_to_svg(
        self,
        elements: Iterable[Mapping[str, Any]],
        app_state: Mapping[str, Any] | None = None,
        files: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        skip_inlining_fonts: bool = False,
    ) -> etree._Element:
        """Renders elements to a new ``<svg>`` root element.

        Args:
            elements: Scene elements in z-order. Deleted elements are skipped.
            app_state: Display settings (background, padding, scale).
            files: Binary assets for image elements, keyed by file id.
            skip_inlining_fonts: If True, the ``style-fonts`` element is left
                empty for a later embedding step.

        Returns:
            Root ``<svg>`` element.

        Raises:
            RenderError: If an element has malformed or unsupported data.
        """
        app_state = app_state or {}
        files = files or {}
        visible = [el for el in elements if not el.get("isDeleted")]
        for element in visible:
            if not isinstance(element.get("type"), str):
                raise RenderError(f"Element {element.get('id')!r} has no type")

        padding = _number(app_state, "exportPadding", DEFAULT_EXPORT_PADDING)
        scale = _number(app_state, "exportScale", 1)
        bounds = get_common_bounds(visible) or (0.0, 0.0, 0.0, 0.0)
        min_x, min_y, max_x, max_y = bounds
        width = max_x - min_x + padding * 2
        height = max_y - min_y + padding * 2

        doc = self._document
        svg = doc.create_element_ns(
            "svg",
            {
                "version": "1.1",
                "viewBox": f"0 0 {_fmt(width)} {_fmt(height)}",
                "width": _fmt(width * scale),
                "height": _fmt(height * scale),
            },
        )
        svg.append(etree.Comment(" svg-source:excalidraw "))
        defs = doc.create_element_ns("defs", parent=svg)
        doc.create_element_ns("style", {"class": "style-fonts"}, parent=defs)

        self._load_scene_fonts(visible, skip_inlining_fonts)

        background = app_state.get("viewBackgroundColor", DEFAULT_BACKGROUND_COLOR)
        if app_state.get("exportBackground", True) and background:
            doc.create_element_ns(
                "rect",
                {
                    "x": "0",
                    "y": "0",
                    "width": _fmt(width),
                    "height": _fmt(height),
                    "fill": str(background),
                },
                parent=svg,
            )

        offset_x = padding - min_x
        offset_y = padding - min_y
        for element in visible:
            self._render_element(svg, element, offset_x, offset_y, app_state, files)

        logger.debug(
            "Rendered %d element(s) into %sx%s SVG", len(visible), _fmt(width), _fmt(height)
        )
        return svg

    def _load_scene_fonts(
        self,
        elements: list[Mapping[str, Any]],
        skip_inlining_fonts: bool,
    ) -> None:
        """Loads every font used by text elements before layout."""
        fonts: dict[str, str] = {}
        for element in elements:
            if element.get("type") != "text":
                continue
            family = get_font_family_string(element.get("fontFamily"))
            size = _number(element, "fontSize", DEFAULT_FONT_SIZE)
            fonts.setdefault(f"{_fmt(size)}px {family}", family)

        for font, family in fonts.items():
            if self._document.fonts.load(font):
                continue
            if not skip_inlining_fonts:
                logger.warning(
                    "Cannot inline font-face for '%s'; leaving it unembedded", family
                )

    def _render_element(
        self,
        svg: etree._Element,
        element: Mapping[str, Any],
        offset_x: float,
        offset_y: float,
        app_state: Mapping[str, Any],
        files: Mapping[str, Mapping[str, Any]],
    ) -> None:
        element_type = element["type"]
        x1, y1, x2, y2 = _local_box(element)
        angle = math.degrees(_number(element, "angle", 0))
        translate_x = _number(element, "x") + offset_x
        translate_y = _number(element, "y") + offset_y

        parent = svg
        link = element.get("link")
        if link:
            parent = self._document.create_element_ns("a", {"href": str(link)}, parent=svg)

        transform = f"translate({_fmt(translate_x)} {_fmt(translate_y)})"
        if angle:
            cx = (x1 + x2) / 2
            cy = (y1 + y2) / 2
            transform += f" rotate({_fmt(angle)} {_fmt(cx)} {_fmt(cy)})"
        group = self._document.create_element_ns(
            "g", {"stroke-linecap": "round", "transform": transform}, parent=parent
        )
        opacity = _number(element, "opacity", 100)
        if opacity < 100:
            group.set("opacity", _fmt(max(opacity, 0) / 100))

        if element_type == "rectangle":
            self._render_rectangle(group, element, x2, y2)
        elif element_type == "ellipse":
            rx = _fmt(x2 / 2)
            ry = _fmt(y2 / 2)
            self._create(
                group, "ellipse", {"cx": rx, "cy": ry, "rx": rx, "ry": ry}, element
            )
        elif element_type == "diamond":
            d = _path_data([(x2 / 2, 0), (x2, y2 / 2), (x2 / 2, y2), (0, y2 / 2)]) + " Z"
            self._create(group, "path", {"d": d}, element)
        elif element_type in LINEAR_TYPES:
            self._render_linear(group, element, app_state)
        elif element_type == "freedraw":
            self._render_freedraw(group, element)
        elif element_type == "text":
            self._render_text(group, element)
        elif element_type == "image":
            self._render_image(group, element, files, x2, y2)
        elif element_type in ("frame", "magicframe"):
            self._create(
                group,
                "rect",
                {
                    "width": _fmt(x2),
                    "height": _fmt(y2),
                    "rx": "8",
                    "ry": "8",
                    "fill": "none",
                    "stroke": FRAME_STROKE_COLOR,
                    "stroke-width": "2",
                },
            )
        elif element_type in ("embeddable", "iframe"):
            self._render_rectangle(group, element, x2, y2)
        else:
            raise RenderError(f"Unsupported element type: {element_type!r}")

    def _create(
        self,
        parent: etree._Element,
        name: str,
        attrib: dict[str, str],
        element: Mapping[str, Any] | None = None,
        fill: str | None = None,
    ) -> etree._Element:
        """Creates a shape, applying the element's stroke and fill styles."""
        if element is not None:
            stroke_width = _number(element, "strokeWidth", 2)
            styled = {
                "stroke": str(element.get("strokeColor") or DEFAULT_STROKE_COLOR),
                "stroke-width": _fmt(stroke_width),
                "fill": fill if fill is not None else _fill_color(element.get("backgroundColor")),
            }
            stroke_style = element.get("strokeStyle")
            if stroke_style == "dashed":
                styled["stroke-dasharray"] = f"8 {_fmt(8 + stroke_width)}"
            elif stroke_style == "dotted":
                styled["stroke-dasharray"] = f"1.5 {_fmt(6 + stroke_width)}"
            styled.update(attrib)
            attrib = styled
        return self._document.create_element_ns(name, attrib, parent=parent)

    def _render_rectangle(
        self, group: etree._Element, element: Mapping[str, Any], width: float, height: float
    ) -> None:
        attrib = {"width": _fmt(width), "height": _fmt(height)}
        roundness = element.get("roundness")
        if isinstance(roundness, Mapping):
            radius = _corner_radius(min(width, height), roundness)
            attrib["rx"] = attrib["ry"] = _fmt(radius)
        self._create(group, "rect", attrib, element)

    def _render_linear(
        self, group: etree._Element, element: Mapping[str, Any], app_state: Mapping[str, Any]
    ) -> None:
        points = _points(element)
        closed = (
            element["type"] == "line"
            and len(points) >= 3
            and points[0] == points[-1]
        )
        d = _path_data(points)
        self._create(group, "path", {"d": d}, element, fill=None if closed else "none")

        if len(points) < 2:
            return
        start_head = element.get("startArrowhead")
        end_head = element.get("endArrowhead")
        if element["type"] == "arrow" and "endArrowhead" not in element:
            end_head = "arrow"
        background = str(app_state.get("viewBackgroundColor") or DEFAULT_BACKGROUND_COLOR)
        if start_head:
            self._render_arrowhead(group, element, start_head, points[0], points[1], background)
        if end_head:
            self._render_arrowhead(group, element, end_head, points[-1], points[-2], background)

    def _render_arrowhead(
        self,
        group: etree._Element,
        element: Mapping[str, Any],
        arrowhead: str,
        tip: tuple[float, float],
        previous: tuple[float, float],
        background: str,
    ) -> None:
        if arrowhead not in _ARROWHEADS:
            logger.debug("Unknown arrowhead %r, drawing plain arrow", arrowhead)
            arrowhead = "arrow"
        size, wing_angle = _ARROWHEADS[arrowhead]
        length = math.hypot(tip[0] - previous[0], tip[1] - previous[1])
        if length == 0:
            return
        size = min(size, length * (0.25 if arrowhead.startswith("diamond") else 0.5))
        ux = (tip[0] - previous[0]) / length
        uy = (tip[1] - previous[1]) / length
        back = (tip[0] - ux * size, tip[1] - uy * size)
        stroke_color = str(element.get("strokeColor") or DEFAULT_STROKE_COLOR)
        outline = arrowhead.endswith("_outline")
        head_fill = background if outline else stroke_color

        if arrowhead in ("dot", "circle", "circle_outline"):
            center = (tip[0] - ux * size / 2, tip[1] - uy * size / 2)
            self._create(
                group,
                "circle",
                {"cx": _fmt(center[0]), "cy": _fmt(center[1]), "r": _fmt(size / 2)},
                element,
                fill=head_fill,
            )
            return

        wing_a = _rotate(back[0], back[1], tip[0], tip[1], math.radians(wing_angle))
        wing_b = _rotate(back[0], back[1], tip[0], tip[1], math.radians(-wing_angle))
        if arrowhead == "arrow":
            d = f"{_path_data([wing_a, tip])} {_path_data([wing_b, tip])}"
            self._create(group, "path", {"d": d}, element, fill="none")
        elif arrowhead == "bar":
            self._create(group, "path", {"d": _path_data([wing_a, wing_b])}, element, fill="none")
        elif arrowhead.startswith("triangle"):
            d = _path_data([tip, wing_a, wing_b]) + " Z"
            self._create(group, "path", {"d": d}, element, fill=head_fill)
        else:
            far = (tip[0] - ux * size * 2, tip[1] - uy * size * 2)
            d = _path_data([tip, wing_a, far, wing_b]) + " Z"
            self._create(group, "path", {"d": d}, element, fill=head_fill)

    def _render_freedraw(self, group: etree._Element, element: Mapping[str, Any]) -> None:
        points = _points(element)
        attrib = {"d": _path_data(points), "stroke-linejoin": "round"}
        self._create(group, "path", attrib, element, fill="none")

    def _render_text(self, group: etree._Element, element: Mapping[str, Any]) -> None:
        text = element.get("text")
        if text is None:
            text = element.get("originalText") or ""
        if not isinstance(text, str):
            raise RenderError(f"Element {element.get('id')!r} has non-string 'text'")

        font_family = get_font_family_string(element.get("fontFamily"))
        primary_family = font_family.split(",", 1)[0]
        font_size = _number(element, "fontSize", DEFAULT_FONT_SIZE)
        line_height = _number(element, "lineHeight", DEFAULT_LINE_HEIGHT)
        line_height_px = font_size * line_height
        lines = text.replace("\r\n", "\n").split("\n")

        width = element.get("width")
        if not width:
            width = self._measure_text_width(lines, f"{_fmt(font_size)}px {font_family}")
        width = abs(_number({"width": width}, "width"))

        text_align = element.get("textAlign") or "left"
        if text_align == "center":
            x, anchor = width / 2, "middle"
        elif text_align == "right":
            x, anchor = width, "end"
        else:
            x, anchor = 0.0, "start"

        vertical_offset = get_vertical_offset(primary_family, font_size, line_height_px)
        direction = "rtl" if _RTL_RE.match(text) else "ltr"
        fill = str(element.get("strokeColor") or DEFAULT_STROKE_COLOR)

        for index, line in enumerate(lines):
            text_el = self._document.create_element_ns(
                "text",
                {
                    "x": _fmt(x),
                    "y": _fmt(index * line_height_px + vertical_offset),
                    "font-family": font_family,
                    "font-size": f"{_fmt(font_size)}px",
                    "fill": fill,
                    "text-anchor": anchor,
                    "style": "white-space: pre;",
                    "direction": direction,
                    "dominant-baseline": "alphabetic",
                },
                parent=group,
            )
            text_el.text = xml_safe(line)

    def _measure_text_width(self, lines: list[str], font: str) -> float:
        self._context.font = font
        return max(self._context.measure_text(line).width for line in lines)

    def _render_image(
        self,
        group: etree._Element,
        element: Mapping[str, Any],
        files: Mapping[str, Mapping[str, Any]],
        width: float,
        height: float,
    ) -> None:
        file_id = element.get("fileId")
        if file_id is not None and not isinstance(file_id, str):
            raise RenderError(
                f"Element {element.get('id')!r} has non-string 'fileId': {file_id!r}"
            )
        file_data = files.get(file_id) if file_id else None
        data_url = file_data.get("dataURL") if isinstance(file_data, Mapping) else None
        if not data_url:
            logger.debug("Image file %r not found in scene files, skipping", file_id)
            return
        self._document.create_element_ns(
            "image",
            {
                "width": _fmt(width),
                "height": _fmt(height),
                "href": str(data_url),
                "preserveAspectRatio": "none",
            },
            parent=group,
        )


def _corner_radius(size: float, roundness: Mapping[str, Any]) -> float:
    """Corner radius for a rounded rectangle of the given shorter side."""
    if roundness.get("type") == 2:
        return size * _PROPORTIONAL_RADIUS
    fixed = roundness.get("value")
    if isinstance(fixed, (int, float)) and not isinstance(fixed, bool):
        radius = float(fixed)
    else:
        radius = _DEFAULT_ADAPTIVE_RADIUS
    cutoff = radius / _PROPORTIONAL_RADIUS
    if size <= cutoff:
        return size * _PROPORTIONAL_RADIUS
    return radius
