# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font usage collection from rendered SVG trees.

Walks the SVG and collects, for every registry font family, the set of
distinct characters drawn with it. This is needed for font subsetting:
only glyphs that are actually used need to be kept in the embedded
font program.
"""

import logging

from lxml import etree

from ..utils import local_name, parse_style_declarations, split_font_families
from .constants import FONT_FILE_MAP

logger = logging.getLogger(__name__)


def _add_chars(
    font_chars: dict[str, set[str]], font_family: str, text: str | None
) -> None:
    """Adds the code points of ``text`` to every registered family listed.

    Args:
        font_chars: Usage map to update.
        font_family: CSS font-family list (comma-separated fallbacks).
        text: Literal text drawn with that list.
    """
    if not text:
        return
    for family in split_font_families(font_family):
        if family not in FONT_FILE_MAP:
            continue
        # str iteration yields code points, so astral characters stay whole
        font_chars.setdefault(family, set()).update(text)


def collect_used_chars_per_font(svg: etree._Element) -> dict[str, set[str]]:
    """Collects all characters used per font family in an SVG tree.

    ``<text>`` elements contribute their ``font-family`` attribute and full
    text content. Elements declaring the family in an inline ``style``
    attribute contribute the text directly following their opening tag.

    Args:
        svg: Root ``<svg>`` element.

    Returns:
        Mapping of font family name to the set of characters drawn in it.
        Only families from FONT_FILE_MAP are tracked.
    """
    font_chars: dict[str, set[str]] = {}

    for element in svg.iter(etree.Element):
        if local_name(element.tag) != "text":
            continue
        font_family = element.get("font-family") or ""
        _add_chars(font_chars, font_family, "".join(element.itertext()))

    for element in svg.iter(etree.Element):
        style = element.get("style")
        if not style or "font-family" not in style:
            continue
        font_family = parse_style_declarations(style).get("font-family")
        if font_family:
            _add_chars(font_chars, font_family, element.text)

    if font_chars:
        logger.debug(
            "Font usage: %s",
            ", ".join(f"{name} ({len(chars)} chars)" for name, chars in font_chars.items()),
        )

    return font_chars
