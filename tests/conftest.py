# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the excalidraw_to_svg test suite."""

import json
import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from font_helpers import make_test_font

from excalidraw_to_svg.fonts.constants import FONT_DIR_ENV_VAR, FONT_FILE_MAP

# Large enough that embedding the whole font is clearly visible in the output
COMIC_SHANNS_GLYPH_COUNT = 3000


def make_text_element(
    text: str,
    font_family: int = 8,
    *,
    element_id: str = "text1",
    x: float = 100,
    y: float = 100,
    **overrides: Any,
) -> dict[str, Any]:
    """Creates an Excalidraw text element.

    Args:
        text: Text content.
        font_family: Excalidraw font family id (8 = Comic Shanns).
        element_id: Element id.
        x: Scene x coordinate.
        y: Scene y coordinate.
        **overrides: Additional element properties.

    Returns:
        Element mapping.
    """
    element = {
        "id": element_id,
        "type": "text",
        "x": x,
        "y": y,
        "width": 120,
        "height": 45,
        "angle": 0,
        "text": text,
        "fontSize": 36,
        "fontFamily": font_family,
        "textAlign": "left",
        "verticalAlign": "top",
        "strokeColor": "#1e1e1e",
        "backgroundColor": "transparent",
        "strokeWidth": 2,
        "strokeStyle": "solid",
        "opacity": 100,
        "isDeleted": False,
        "lineHeight": 1.25,
    }
    element.update(overrides)
    return element


def make_diagram(*elements: dict[str, Any], **app_state: Any) -> dict[str, Any]:
    """Wraps elements into an Excalidraw document."""
    return {
        "type": "excalidraw",
        "version": 2,
        "source": "https://excalidraw.com",
        "elements": list(elements),
        "appState": {"viewBackgroundColor": "#ffffff", **app_state},
        "files": {},
    }


# -- Fixtures --


@pytest.fixture(autouse=True)
def _isolate_font_dir_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keeps a font directory from the environment out of the tests."""
    monkeypatch.delenv(FONT_DIR_ENV_VAR, raising=False)


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Generator[None, None, None]:
    """Undoes setup_logging() calls made by a test."""
    package_logger = logging.getLogger("excalidraw_to_svg")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)


@pytest.fixture(scope="session")
def comic_shanns_font_data() -> bytes:
    """Full Comic Shanns test font as bytes."""
    return make_test_font("Comic Shanns", glyph_count=COMIC_SHANNS_GLYPH_COUNT)


@pytest.fixture(scope="session")
def font_dir(tmp_path_factory: pytest.TempPathFactory, comic_shanns_font_data: bytes) -> Path:
    """Font assets directory with test fonts for some registry families.

    Comic Shanns, Excalifont, Virgil and Cascadia are present; the other
    registry families (e.g. Nunito) have no file.

    Returns:
        Path to the directory.
    """
    directory = tmp_path_factory.mktemp("fonts")
    (directory / FONT_FILE_MAP["Comic Shanns"]).write_bytes(comic_shanns_font_data)
    for family in ("Excalifont", "Virgil", "Cascadia"):
        (directory / FONT_FILE_MAP[family]).write_bytes(make_test_font(family))
    return directory


@pytest.fixture
def ellipse_diagram() -> dict[str, Any]:
    """Diagram with a single ellipse and no text."""
    ellipse = {
        "id": "vWrqOAfkind2qcm7LDAGZ",
        "type": "ellipse",
        "x": 414,
        "y": 237,
        "width": 214,
        "height": 214,
        "angle": 0,
        "strokeColor": "#000000",
        "backgroundColor": "#15aabf",
        "fillStyle": "hachure",
        "strokeWidth": 1,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 100,
        "groupIds": [],
        "seed": 1041657908,
        "version": 120,
        "isDeleted": False,
        "boundElementIds": None,
    }
    return make_diagram(ellipse, gridSize=None)


@pytest.fixture
def text_diagram() -> dict[str, Any]:
    """Diagram with one Comic Shanns text element reading 'halooo'."""
    return make_diagram(make_text_element("halooo"))


@pytest.fixture
def diagram_file(tmp_path: Path, text_diagram: dict[str, Any]) -> Path:
    """Text diagram saved as an .excalidraw file.

    Returns:
        Path to the file.
    """
    path = tmp_path / "sample.excalidraw"
    path.write_text(json.dumps(text_diagram), encoding="utf-8")
    return path
