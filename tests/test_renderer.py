# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for renderer.py."""

import asyncio
import logging
import math

import pytest
from conftest import make_text_element

from excalidraw_to_svg.exceptions import RenderError
from excalidraw_to_svg.headless import HeadlessDocument
from excalidraw_to_svg.renderer import (
    SceneRenderer,
    get_common_bounds,
    get_element_bounds,
    get_font_family_string,
    get_vertical_offset,
)
from excalidraw_to_svg.utils import svg_tag


def _render(elements, app_state=None, files=None, **kwargs):
    renderer = SceneRenderer(HeadlessDocument())
    return asyncio.run(renderer.export_to_svg(elements, app_state, files, **kwargs))


def _shape(element_type: str, **overrides) -> dict:
    element = {
        "id": f"{element_type}1",
        "type": element_type,
        "x": 0,
        "y": 0,
        "width": 100,
        "height": 50,
        "angle": 0,
        "strokeColor": "#1e1e1e",
        "backgroundColor": "transparent",
        "strokeWidth": 2,
        "strokeStyle": "solid",
        "opacity": 100,
    }
    element.update(overrides)
    return element


def _element_groups(svg):
    return [child for child in svg if child.tag in (svg_tag("g"), svg_tag("a"))]


class TestFontFamilyString:
    """Tests for get_font_family_string."""

    def test_comic_shanns(self) -> None:
        assert get_font_family_string(8) == "Comic Shanns, Segoe UI Emoji"

    def test_hand_drawn_family_gets_cjk_fallback(self) -> None:
        assert get_font_family_string(5) == "Excalifont, Xiaolai, Segoe UI Emoji"
        assert get_font_family_string(1) == "Virgil, Xiaolai, Segoe UI Emoji"

    def test_unknown_id_uses_default(self) -> None:
        assert get_font_family_string(42) == get_font_family_string(5)
        assert get_font_family_string(None) == get_font_family_string(5)

    @pytest.mark.parametrize("font_family_id", [[8], {"id": 8}, "8", True])
    def test_non_numeric_id_raises(self, font_family_id) -> None:
        with pytest.raises(RenderError, match="Invalid fontFamily"):
            get_font_family_string(font_family_id)


class TestGeometry:
    """Tests for bounds and baseline helpers."""

    def test_element_bounds(self) -> None:
        element = _shape("rectangle", x=10, y=20)
        assert get_element_bounds(element) == (10, 20, 110, 70)

    def test_rotated_element_bounds(self) -> None:
        element = _shape("rectangle", angle=math.pi / 2)
        assert get_element_bounds(element) == pytest.approx((25, -25, 75, 75))

    def test_linear_bounds_use_points(self) -> None:
        element = _shape("line", x=5, y=5, points=[[0, 0], [40, -10], [20, 30]])
        assert get_element_bounds(element) == (5, -5, 45, 35)

    def test_common_bounds(self) -> None:
        elements = [_shape("rectangle"), _shape("ellipse", x=200, y=-10)]
        assert get_common_bounds(elements) == (0, -10, 300, 50)

    def test_common_bounds_empty(self) -> None:
        assert get_common_bounds([]) is None

    def test_vertical_offset(self) -> None:
        # Comic Shanns: ascender 750, descender -250 per 1000 units
        offset = get_vertical_offset("Comic Shanns", 20, 25)
        assert offset == pytest.approx(15 + (25 - 15 - 5) / 2)


class TestExportToSVG:
    """Tests for SceneRenderer.export_to_svg."""

    def test_root_attributes(self, ellipse_diagram) -> None:
        svg = _render(ellipse_diagram["elements"], ellipse_diagram["appState"])
        assert svg.tag == svg_tag("svg")
        assert svg.get("version") == "1.1"
        assert svg.get("viewBox") == "0 0 234 234"
        assert svg.get("width") == "234"
        assert svg.get("height") == "234"

    def test_export_scale(self) -> None:
        svg = _render([_shape("rectangle")], {"exportScale": 2})
        assert svg.get("viewBox") == "0 0 120 70"
        assert svg.get("width") == "240"
        assert svg.get("height") == "140"

    def test_export_padding(self) -> None:
        svg = _render([_shape("rectangle")], {"exportPadding": 0})
        assert svg.get("viewBox") == "0 0 100 50"

    def test_empty_scene(self) -> None:
        svg = _render([])
        assert svg.get("viewBox") == "0 0 20 20"
        assert _element_groups(svg) == []

    def test_has_empty_font_style(self) -> None:
        svg = _render([_shape("rectangle")])
        defs = svg.find(svg_tag("defs"))
        style = defs.find(svg_tag("style"))
        assert style.get("class") == "style-fonts"
        assert not style.text

    def test_background_rect(self) -> None:
        svg = _render([_shape("rectangle")], {"viewBackgroundColor": "#fafafa"})
        background = svg.find(svg_tag("rect"))
        assert background.get("fill") == "#fafafa"
        assert background.get("width") == "120"

    def test_no_background_when_disabled(self) -> None:
        svg = _render([_shape("rectangle")], {"exportBackground": False})
        assert svg.find(svg_tag("rect")) is None

    def test_deleted_elements_skipped(self) -> None:
        svg = _render(
            [_shape("rectangle"), _shape("ellipse", id="gone", isDeleted=True)]
        )
        assert len(_element_groups(svg)) == 1
        assert not list(svg.iter(svg_tag("ellipse")))

    def test_ellipse(self, ellipse_diagram) -> None:
        svg = _render(ellipse_diagram["elements"], ellipse_diagram["appState"])
        (group,) = _element_groups(svg)
        assert group.get("transform") == "translate(10 10)"
        ellipse = group.find(svg_tag("ellipse"))
        assert ellipse.get("rx") == "107"
        assert ellipse.get("cy") == "107"
        assert ellipse.get("stroke") == "#000000"
        assert ellipse.get("stroke-width") == "1"
        assert ellipse.get("fill") == "#15aabf"

    def test_rounded_rectangle(self) -> None:
        svg = _render([_shape("rectangle", roundness={"type": 3})])
        rect = _element_groups(svg)[0].find(svg_tag("rect"))
        assert rect.get("rx") == "12.5"
        assert rect.get("fill") == "none"

    def test_diamond_is_closed_path(self) -> None:
        svg = _render([_shape("diamond")])
        path = _element_groups(svg)[0].find(svg_tag("path"))
        assert path.get("d") == "M50 0 L100 25 L50 50 L0 25 Z"

    def test_dashed_stroke(self) -> None:
        svg = _render([_shape("rectangle", strokeStyle="dashed")])
        rect = _element_groups(svg)[0].find(svg_tag("rect"))
        assert rect.get("stroke-dasharray") == "8 10"

    def test_arrow_gets_default_arrowhead(self) -> None:
        arrow = _shape("arrow", points=[[0, 0], [100, 0]])
        svg = _render([arrow])
        paths = _element_groups(svg)[0].findall(svg_tag("path"))
        assert len(paths) == 2
        assert paths[0].get("d") == "M0 0 L100 0"

    def test_line_without_arrowheads(self) -> None:
        svg = _render([_shape("line", points=[[0, 0], [100, 0]])])
        assert len(_element_groups(svg)[0].findall(svg_tag("path"))) == 1

    def test_dot_arrowhead_is_circle(self) -> None:
        arrow = _shape("arrow", points=[[0, 0], [100, 0]], endArrowhead="dot")
        svg = _render([arrow])
        assert _element_groups(svg)[0].find(svg_tag("circle")) is not None

    def test_freedraw(self) -> None:
        svg = _render([_shape("freedraw", points=[[0, 0], [3, 4], [6, 0]])])
        path = _element_groups(svg)[0].find(svg_tag("path"))
        assert path.get("d") == "M0 0 L3 4 L6 0"
        assert path.get("fill") == "none"

    def test_rotation_and_opacity(self) -> None:
        svg = _render([_shape("rectangle", angle=math.pi / 2, opacity=50)])
        group = _element_groups(svg)[0]
        assert "rotate(90 50 25)" in group.get("transform")
        assert group.get("opacity") == "0.5"

    def test_link_wraps_element(self) -> None:
        svg = _render([_shape("rectangle", link="https://example.com")])
        (anchor,) = _element_groups(svg)
        assert anchor.tag == svg_tag("a")
        assert anchor.get("href") == "https://example.com"
        assert anchor.find(svg_tag("g")) is not None

    def test_image_from_files(self) -> None:
        files = {"f1": {"mimeType": "image/png", "dataURL": "data:image/png;base64,AA"}}
        svg = _render([_shape("image", fileId="f1")], files=files)
        image = _element_groups(svg)[0].find(svg_tag("image"))
        assert image.get("href") == "data:image/png;base64,AA"

    def test_image_without_file_is_empty_group(self) -> None:
        svg = _render([_shape("image", fileId="missing")])
        assert len(_element_groups(svg)[0]) == 0

    def test_unhashable_file_id_raises(self) -> None:
        with pytest.raises(RenderError, match="non-string 'fileId'"):
            _render([_shape("image", fileId=["f1"])], files={"f1": {}})

    def test_link_with_control_characters(self) -> None:
        svg = _render([_shape("rectangle", link="https://example.com/\x0c")])
        (anchor,) = _element_groups(svg)
        assert anchor.get("href") == "https://example.com/"

    def test_frame(self) -> None:
        svg = _render([_shape("frame")])
        rect = _element_groups(svg)[0].find(svg_tag("rect"))
        assert rect.get("stroke") == "#bbb"

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(RenderError, match="Unsupported element type"):
            _render([_shape("hexagon")])

    def test_missing_type_raises(self) -> None:
        element = _shape("rectangle")
        del element["type"]
        with pytest.raises(RenderError, match="no type"):
            _render([element])

    def test_missing_coordinate_raises(self) -> None:
        element = _shape("rectangle")
        del element["x"]
        with pytest.raises(RenderError, match="missing 'x'"):
            _render([element])

    def test_non_numeric_value_raises(self) -> None:
        with pytest.raises(RenderError, match="non-numeric 'width'"):
            _render([_shape("rectangle", width="wide")])

    def test_invalid_points_raise(self) -> None:
        with pytest.raises(RenderError, match="invalid point"):
            _render([_shape("line", points=[[0, 0], [1]])])


class TestTextRendering:
    """Tests for text elements."""

    def test_text_attributes(self) -> None:
        svg = _render([make_text_element("halooo")])
        (text,) = svg.iter(svg_tag("text"))
        assert text.text == "halooo"
        assert text.get("font-family") == "Comic Shanns, Segoe UI Emoji"
        assert text.get("font-size") == "36px"
        assert text.get("fill") == "#1e1e1e"
        assert text.get("text-anchor") == "start"
        assert text.get("direction") == "ltr"
        assert text.get("style") == "white-space: pre;"

    def test_one_text_node_per_line(self) -> None:
        svg = _render([make_text_element("first\nsecond")])
        texts = list(svg.iter(svg_tag("text")))
        assert [t.text for t in texts] == ["first", "second"]
        # 36px * 1.25 line height
        assert float(texts[1].get("y")) - float(texts[0].get("y")) == pytest.approx(45)

    def test_center_alignment(self) -> None:
        svg = _render([make_text_element("hi", textAlign="center")])
        (text,) = svg.iter(svg_tag("text"))
        assert text.get("x") == "60"
        assert text.get("text-anchor") == "middle"

    def test_right_alignment_without_width(self) -> None:
        """Missing widths are measured, and measure as zero headless."""
        element = make_text_element("hi", textAlign="right")
        del element["width"]
        svg = _render([element])
        (text,) = svg.iter(svg_tag("text"))
        assert text.get("x") == "0"
        assert text.get("text-anchor") == "end"

    def test_rtl_text(self) -> None:
        svg = _render([make_text_element("שלום")])
        (text,) = svg.iter(svg_tag("text"))
        assert text.get("direction") == "rtl"

    def test_control_characters_dropped_from_text(self) -> None:
        svg = _render([make_text_element("tab\tok\x0cformfeed\x00")])
        (text,) = svg.iter(svg_tag("text"))
        assert text.text == "tab\tokformfeed"

    def test_list_font_family_raises(self) -> None:
        with pytest.raises(RenderError, match="Invalid fontFamily"):
            _render([make_text_element("hi", font_family=[8])])

    def test_non_string_text_raises(self) -> None:
        with pytest.raises(RenderError, match="non-string 'text'"):
            _render([make_text_element(123)])

    def test_font_load_warning_without_skip(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="excalidraw_to_svg.renderer"):
            _render([make_text_element("hi")])
        assert any(
            "font-face" in r.getMessage()
            for r in caplog.records
            if r.name == "excalidraw_to_svg.renderer"
        )

    def test_no_font_load_warning_with_skip(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="excalidraw_to_svg.renderer"):
            _render([make_text_element("hi")], skip_inlining_fonts=True)
        assert not [r for r in caplog.records if r.name == "excalidraw_to_svg.renderer"]
