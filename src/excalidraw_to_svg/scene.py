# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Excalidraw scene model and parsing."""

import json
import logging
from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from .exceptions import InvalidSceneError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scene:
    """Parsed Excalidraw diagram.

    Attributes:
        elements: Drawing elements in z-order (first is bottom-most).
        app_state: Global display settings (``appState``).
        files: Optional binary assets keyed by file id, each with
            ``mimeType`` and ``dataURL`` entries.
    """

    elements: tuple[dict[str, Any], ...] = ()
    app_state: dict[str, Any] = field(default_factory=dict)
    files: dict[str, dict[str, Any]] | None = None

    @property
    def visible_elements(self) -> list[dict[str, Any]]:
        """Elements that are not marked as deleted."""
        return [el for el in self.elements if not el.get("isDeleted")]


def parse_scene(diagram: "str | bytes | Mapping[str, Any] | Scene") -> Scene:
    """Parses an Excalidraw diagram into a Scene.

    Args:
        diagram: JSON text, an already-decoded mapping, or a Scene.

    Returns:
        The parsed Scene. Mappings are deep-copied so later changes by
        the caller do not affect it.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON.
        InvalidSceneError: If the decoded data has the wrong structure.
    """
    if isinstance(diagram, Scene):
        return diagram

    if isinstance(diagram, (str, bytes, bytearray)):
        data = json.loads(diagram)
    else:
        data = diagram

    if not isinstance(data, Mapping):
        raise InvalidSceneError(
            f"Scene must be a JSON object, got {type(data).__name__}"
        )

    elements = data.get("elements") or []
    if not isinstance(elements, list):
        raise InvalidSceneError("Scene 'elements' must be a list")
    for index, element in enumerate(elements):
        if not isinstance(element, Mapping):
            raise InvalidSceneError(f"Scene element {index} must be an object")

    app_state = data.get("appState") or {}
    if not isinstance(app_state, Mapping):
        raise InvalidSceneError("Scene 'appState' must be an object")

    files = data.get("files") or None
    if files is not None and not isinstance(files, Mapping):
        raise InvalidSceneError("Scene 'files' must be an object")

    scene = Scene(
        elements=tuple(dict(deepcopy(el)) for el in elements),
        app_state=dict(deepcopy(app_state)),
        files=dict(deepcopy(files)) if files is not None else None,
    )
    logger.debug(
        "Parsed scene: %d element(s), %d file(s)",
        len(scene.elements),
        len(scene.files or {}),
    )
    return scene
