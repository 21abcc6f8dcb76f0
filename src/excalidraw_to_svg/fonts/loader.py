# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font loading from the font assets directory."""

import logging
import os
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from .constants import FONT_DIR_ENV_VAR, FONT_FILE_MAP

logger = logging.getLogger(__name__)


def get_font_assets_dir(font_dir: str | os.PathLike | None = None) -> Traversable:
    """Resolves the directory holding the registry font files.

    Precedence: the explicit argument, then the
    ``EXCALIDRAW_TO_SVG_FONT_DIR`` environment variable, then the
    ``resources/fonts`` directory bundled with the package.

    Args:
        font_dir: Optional explicit directory.

    Returns:
        Directory as a path-like traversable.
    """
    if font_dir is not None:
        return Path(font_dir)

    env_dir = os.environ.get(FONT_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir)

    return resources.files("excalidraw_to_svg") / "resources" / "fonts"


class FontLoader:
    """Loads and caches registry font files.

    Missing or unreadable files are reported as ``None`` rather than
    raised, so a conversion can continue without that family.
    """

    def __init__(
        self,
        font_dir: str | os.PathLike | None = None,
        font_cache: dict[str, bytes | None] | None = None,
    ) -> None:
        """Initializes the FontLoader.

        Args:
            font_dir: Optional font assets directory override.
            font_cache: Optional shared cache dictionary for loaded fonts.
        """
        self.font_dir = get_font_assets_dir(font_dir)
        self._font_cache = font_cache if font_cache is not None else {}

    def read_font_file(self, file_name: str) -> bytes | None:
        """Reads a font file from the assets directory.

        Args:
            file_name: Name of the font file (e.g. ``"Excalifont.ttf"``).

        Returns:
            Font data as bytes, or None if the file does not exist or
            cannot be read.
        """
        if file_name in self._font_cache:
            return self._font_cache[file_name]

        try:
            font_data = (self.font_dir / file_name).read_bytes()
        except OSError as e:
            logger.debug("Could not read font file '%s': %s", file_name, e)
            font_data = None

        self._font_cache[file_name] = font_data
        return font_data

    def load_family(self, family: str) -> bytes | None:
        """Loads the source font for a registry family.

        Args:
            family: Font family name (e.g. ``"Comic Shanns"``).

        Returns:
            Font data, or None for unknown families and unreadable files.
        """
        file_name = FONT_FILE_MAP.get(family)
        if file_name is None:
            return None
        return self.read_font_file(file_name)
