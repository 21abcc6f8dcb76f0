# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font usage scanning, subsetting and embedding for SVG output."""

from ..exceptions import FontSubsettingError
from .constants import FONT_FAMILY_IDS, FONT_FILE_MAP
from .embedder import FontEmbedder, embed_fonts_in_svg, make_font_face_rule
from .loader import FontLoader, get_font_assets_dir
from .subsetter import subset_font, subset_font_data
from .usage import collect_used_chars_per_font

__all__ = [
    # Exceptions
    "FontSubsettingError",
    # Constants
    "FONT_FAMILY_IDS",
    "FONT_FILE_MAP",
    # Usage
    "collect_used_chars_per_font",
    # Subsetting
    "subset_font",
    "subset_font_data",
    # Embedding
    "FontEmbedder",
    "embed_fonts_in_svg",
    "make_font_face_rule",
    # Helper classes
    "FontLoader",
    "get_font_assets_dir",
]
