# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font constants and registry mappings."""

# Mapping of Excalidraw font family names to their .ttf file names in the
# font assets directory
FONT_FILE_MAP: dict[str, str] = {
    "Excalifont": "Excalifont.ttf",
    "Virgil": "Virgil.ttf",
    "Cascadia": "Cascadia Code.ttf",
    "Comic Shanns": "Comic Shanns Regular.ttf",
    "Liberation Sans": "Liberation Sans.ttf",
    "Lilita One": "Lilita One.ttf",
    "Nunito": "Nunito ExtraLight Medium.ttf",
}

# Numeric fontFamily ids stored on Excalidraw text elements
FONT_FAMILY_IDS: dict[int, str] = {
    1: "Virgil",
    2: "Helvetica",
    3: "Cascadia",
    5: "Excalifont",
    6: "Nunito",
    7: "Lilita One",
    8: "Comic Shanns",
    9: "Liberation Sans",
}

DEFAULT_FONT_FAMILY_ID = 5

# Hand-drawn families fall back to Xiaolai for CJK glyphs
HAND_DRAWN_FAMILIES = frozenset({"Virgil", "Excalifont"})

CJK_FALLBACK_FAMILY = "Xiaolai"
EMOJI_FALLBACK_FAMILY = "Segoe UI Emoji"

# Vertical metrics used for baseline placement: (unitsPerEm, ascender, descender)
FONT_METRICS: dict[str, tuple[int, int, int]] = {
    "Virgil": (1000, 886, -374),
    "Excalifont": (1000, 886, -374),
    "Helvetica": (2048, 1577, -471),
    "Cascadia": (2048, 1900, -480),
    "Nunito": (1000, 1011, -353),
    "Lilita One": (1000, 923, -220),
    "Comic Shanns": (1000, 750, -250),
    "Liberation Sans": (2048, 1854, -434),
}

DEFAULT_LINE_HEIGHT = 1.25

# MIME type and CSS format keyword for embedded subsets
FONT_MIME_TYPE = "font/ttf"
FONT_CSS_FORMAT = "truetype"

# Environment variable overriding the font assets directory
FONT_DIR_ENV_VAR = "EXCALIDRAW_TO_SVG_FONT_DIR"
