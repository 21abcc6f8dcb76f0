# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""excalidraw_to_svg - Convert Excalidraw diagrams to self-contained SVG."""

from importlib.metadata import PackageNotFoundError, version

from .converter import (
    ConversionResult,
    convert_directory,
    convert_file,
    convert_files,
    convert_to_svg,
    excalidraw_to_svg,
)
from .document import SVGDocument
from .exceptions import (
    ConversionError,
    ExcalidrawToSVGError,
    FontSubsettingError,
    InvalidSceneError,
    RenderError,
)
from .scene import Scene, parse_scene

try:
    __version__ = version("excalidraw-to-svg")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "excalidraw_to_svg",
    "convert_to_svg",
    "convert_file",
    "convert_files",
    "convert_directory",
    "ConversionResult",
    "SVGDocument",
    "Scene",
    "parse_scene",
    "ExcalidrawToSVGError",
    "InvalidSceneError",
    "RenderError",
    "ConversionError",
    "FontSubsettingError",
]
