# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Embedding of subsetted fonts as CSS @font-face rules.

Each registry family used in the SVG is subsetted to the characters
drawn with it, base64-encoded and bound to its family name through an
``@font-face`` rule in the SVG's ``<style>`` element. If subsetting
fails the full font is embedded instead; if the font file is missing
the family is left out.
"""

import base64
import logging
import os

from lxml import etree

from ..exceptions import FontSubsettingError
from ..utils import svg_tag
from .constants import FONT_CSS_FORMAT, FONT_MIME_TYPE
from .loader import FontLoader
from .subsetter import subset_font
from .usage import collect_used_chars_per_font

logger = logging.getLogger(__name__)

FONT_STYLE_CLASS = "style-fonts"


def make_font_face_rule(font_name: str, font_data: bytes) -> str:
    """Builds an @font-face rule embedding ``font_data`` as a data URI.

    Args:
        font_name: CSS font family name.
        font_data: TrueType font bytes.

    Returns:
        Single-line CSS rule.
    """
    encoded = base64.b64encode(font_data).decode("ascii")
    data_uri = f"data:{FONT_MIME_TYPE};base64,{encoded}"
    return (
        f'@font-face {{ font-family: "{font_name}"; '
        f'src: url("{data_uri}") format("{FONT_CSS_FORMAT}"); }}'
    )


class FontEmbedder:
    """Embeds subsetted registry fonts into SVG trees."""

    def __init__(
        self,
        font_dir: str | os.PathLike | None = None,
        loader: FontLoader | None = None,
    ) -> None:
        """Initializes the FontEmbedder.

        Args:
            font_dir: Optional font assets directory override.
            loader: Optional preconfigured FontLoader (takes precedence
                over ``font_dir``).
        """
        self.loader = loader if loader is not None else FontLoader(font_dir)

    async def generate_font_face_css(self, font_chars: dict[str, set[str]]) -> str:
        """Generates @font-face CSS for every family in a usage map.

        Args:
            font_chars: Mapping of family name to used characters.

        Returns:
            Newline-separated @font-face rules, or an empty string when
            nothing could be embedded.
        """
        font_face_rules: list[str] = []

        for font_name, chars in font_chars.items():
            font_data = self.loader.load_family(font_name)
            if font_data is None:
                logger.debug("Font file missing for '%s', not embedding", font_name)
                continue

            try:
                subset_data = await subset_font(font_data, "".join(chars))
            except FontSubsettingError as e:
                logger.debug(
                    "Subsetting '%s' failed, embedding full font: %s", font_name, e
                )
                subset_data = font_data

            font_face_rules.append(make_font_face_rule(font_name, subset_data))
            logger.info(
                "Font embedded: %s (%d characters, %d bytes)",
                font_name,
                len(chars),
                len(subset_data),
            )

        return "\n".join(font_face_rules)

    async def embed_fonts(self, svg: etree._Element) -> None:
        """Injects @font-face rules for all used fonts into the SVG.

        The rules are prepended to ``<style class="style-fonts">`` if
        present, otherwise to the first ``<style>``, otherwise to a new
        ``<style>`` inside ``<defs>`` (created as the first child of the
        root when missing). The tree is left untouched when no
        registered font is used.

        Args:
            svg: Root ``<svg>`` element, modified in place.
        """
        font_chars = collect_used_chars_per_font(svg)
        if not font_chars:
            return

        font_css = await self.generate_font_face_css(font_chars)
        if not font_css:
            return

        style_el = _find_style_element(svg)
        style_el.text = font_css + "\n" + (style_el.text or "")


def _find_style_element(svg: etree._Element) -> etree._Element:
    """Finds or creates the <style> element receiving font rules."""
    styles = list(svg.iter(svg_tag("style"), "style"))
    for style_el in styles:
        if FONT_STYLE_CLASS in (style_el.get("class") or "").split():
            return style_el
    if styles:
        return styles[0]

    defs = next(iter(svg.iter(svg_tag("defs"), "defs")), None)
    if defs is None:
        defs = etree.SubElement(svg, _qualified_tag(svg, "defs"))
        svg.insert(0, defs)
    return etree.SubElement(defs, _qualified_tag(svg, "style"))


def _qualified_tag(svg: etree._Element, name: str) -> str:
    """Qualifies ``name`` with the namespace of the root element."""
    namespace = etree.QName(svg).namespace
    return f"{{{namespace}}}{name}" if namespace else name


async def embed_fonts_in_svg(
    svg: etree._Element, font_dir: str | os.PathLike | None = None
) -> None:
    """Embeds subsetted fonts into an SVG tree.

    Args:
        svg: Root ``<svg>`` element, modified in place.
        font_dir: Optional font assets directory override.
    """
    await FontEmbedder(font_dir).embed_fonts(svg)
