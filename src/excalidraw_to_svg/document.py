# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""SVG document returned by the converter."""

import os
from pathlib import Path

from lxml import etree

from .utils import local_name, svg_tag


class SVGDocument:
    """Rendered SVG tree with query and serialization helpers.

    Attributes:
        svg: Root ``<svg>`` element. Owned by the document; modify it
            only through the conversion pipeline.
    """

    def __init__(self, svg: etree._Element) -> None:
        self.svg = svg

    def find_all(self, name: str) -> list[etree._Element]:
        """Returns all descendant elements with the given SVG local name."""
        return list(self.svg.iter(svg_tag(name), name))

    @property
    def font_face_rules(self) -> list[str]:
        """The ``@font-face`` rules found in the document's style elements."""
        rules = []
        for style in self.find_all("style"):
            for line in (style.text or "").splitlines():
                if line.lstrip().startswith("@font-face"):
                    rules.append(line.strip())
        return rules

    def tostring(self, pretty_print: bool = False) -> str:
        """Serializes the document to SVG markup.

        Args:
            pretty_print: If True, indent the output.

        Returns:
            SVG markup without an XML declaration.
        """
        return etree.tostring(self.svg, encoding="unicode", pretty_print=pretty_print)

    def save(self, path: str | os.PathLike, pretty_print: bool = False) -> Path:
        """Writes the SVG markup to a UTF-8 file.

        Args:
            path: Output file path.
            pretty_print: If True, indent the output.

        Returns:
            The output path.
        """
        output_path = Path(path)
        output_path.write_text(self.tostring(pretty_print=pretty_print), encoding="utf-8")
        return output_path

    def __str__(self) -> str:
        return self.tostring()

    def __repr__(self) -> str:
        return (
            f"SVGDocument(<{local_name(self.svg.tag)}> "
            f"with {sum(1 for _ in self.svg.iter())} nodes)"
        )
