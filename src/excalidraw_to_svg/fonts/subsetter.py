# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font subsetting for embedded SVG fonts.

Reduces file size by removing every glyph that is not needed to draw
the characters used in the SVG. Output is always a plain sfnt
(TrueType) binary, which every SVG viewer that honours ``@font-face``
can read.
"""

import asyncio
import logging
from io import BytesIO

from fontTools.subset import Options, Subsetter
from fontTools.ttLib import TTFont

from ..exceptions import FontSubsettingError

logger = logging.getLogger(__name__)


def _subset_options() -> Options:
    """Builds the fontTools options used for every subset."""
    options = Options()
    # None keeps the sfnt container (no WOFF/WOFF2 compression)
    options.flavor = None
    options.notdef_outline = True
    options.name_IDs = ["*"]
    options.name_languages = ["*"]
    options.name_legacy = True
    options.layout_features = ["*"]
    return options


def subset_font_data(font_data: bytes, text: str) -> bytes:
    """Subsets TrueType or CFF/OpenType font data using fontTools.

    Args:
        font_data: Original font bytes.
        text: Characters to retain. Order and duplicates are irrelevant.

    Returns:
        Subsetted font bytes.

    Raises:
        FontSubsettingError: If the font cannot be parsed or subsetted.
    """
    try:
        # Keep head.modified so equal inputs give byte-identical subsets
        tt_font = TTFont(BytesIO(font_data), recalcTimestamp=False)
    except Exception as e:
        raise FontSubsettingError(f"Could not parse font data: {e}") from e

    try:
        # fontTools needs a cmap to map characters to glyphs
        cmap_table = tt_font.get("cmap")
        if cmap_table is None or not any(t.cmap for t in cmap_table.tables):
            raise FontSubsettingError("Font has no cmap table")

        subsetter = Subsetter(options=_subset_options())
        subsetter.populate(text=text)
        subsetter.subset(tt_font)

        output = BytesIO()
        tt_font.save(output)
    except FontSubsettingError:
        raise
    except Exception as e:
        raise FontSubsettingError(f"Subsetting failed: {e}") from e
    finally:
        tt_font.close()

    subset_data = output.getvalue()
    logger.debug(
        "Font subsetted: %d -> %d bytes (%d characters)",
        len(font_data),
        len(subset_data),
        len(set(text)),
    )
    return subset_data


async def subset_font(font_data: bytes, text: str) -> bytes:
    """Awaitable wrapper around subset_font_data.

    The CPU-bound subsetting runs in a worker thread so concurrent
    conversions on the same event loop keep making progress.

    Args:
        font_data: Original font bytes.
        text: Characters to retain.

    Returns:
        Subsetted font bytes.

    Raises:
        FontSubsettingError: If the font cannot be parsed or subsetted.
    """
    return await asyncio.to_thread(subset_font_data, font_data, text)
