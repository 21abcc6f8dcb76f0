# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for excalidraw_to_svg."""


class ExcalidrawToSVGError(Exception):
    """Base exception for all excalidraw_to_svg errors."""


class InvalidSceneError(ExcalidrawToSVGError, ValueError):
    """Scene data has the wrong structure (e.g. elements is not a list)."""


class RenderError(ExcalidrawToSVGError):
    """The renderer rejected the scene data."""


class ConversionError(ExcalidrawToSVGError):
    """Error during file conversion."""


class FontSubsettingError(ExcalidrawToSVGError):
    """Font could not be subsetted."""
