# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for Excalidraw to SVG conversion."""

import logging
import re
import sys

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SVG_NS = "http://www.w3.org/2000/svg"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configures logging for excalidraw_to_svg.

    Args:
        verbose: If True, DEBUG level is used.
        quiet: If True, only ERROR and higher are output.
            Takes precedence over verbose.

    Returns:
        Configured logger for excalidraw_to_svg.
    """
    # Determine log level (quiet takes precedence)
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    package_logger = logging.getLogger("excalidraw_to_svg")
    package_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)
    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    logger.debug("Logging configured with level: %s", logging.getLevelName(level))
    return package_logger


def svg_tag(local_name: str) -> str:
    """Returns the Clark-notation tag for an SVG element name."""
    return f"{{{SVG_NS}}}{local_name}"


def local_name(tag: object) -> str:
    """Strips the namespace from an lxml tag.

    Comments and processing instructions have non-string tags and
    yield an empty string.
    """
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def split_font_families(value: str) -> list[str]:
    """Splits a CSS font-family list into bare family names.

    Surrounding whitespace and single or double quotes are removed,
    empty entries are dropped.

    Args:
        value: Value such as ``'"Comic Shanns", Segoe UI Emoji'``.

    Returns:
        Family names in declaration order.
    """
    families = []
    for part in value.split(","):
        name = part.strip().strip("'\"").strip()
        if name:
            families.append(name)
    return families


def parse_style_declarations(style: str) -> dict[str, str]:
    """Parses an inline ``style`` attribute into a property mapping.

    Property names are lowercased. Later declarations override earlier
    ones, as in CSS. Declarations without a colon are ignored.

    Args:
        style: Raw attribute value, e.g. ``"font-family: Virgil; fill: red"``.

    Returns:
        Mapping of property name to value.
    """
    declarations: dict[str, str] = {}
    for chunk in style.split(";"):
        if ":" not in chunk:
            continue
        name, value = chunk.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if name and value:
            declarations[name] = value
    return declarations


def format_number(value: float) -> str:
    """Formats a coordinate compactly (no trailing zeros, max 3 decimals)."""
    if value == int(value):
        return str(int(value))
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# Code points outside the XML 1.0 Char production (C0 controls other
# than tab/LF/CR, lone surrogates, U+FFFE and U+FFFF)
_XML_ILLEGAL_RE = re.compile(
    r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def xml_safe(value: str) -> str:
    """Removes characters that cannot appear in an XML document.

    Args:
        value: Text or attribute value.

    Returns:
        The value without XML-illegal code points.
    """
    return _XML_ILLEGAL_RE.sub("", value)
