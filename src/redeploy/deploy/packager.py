"""Classify an artifact by extension and wrap it in a typed deployable."""

import os
from pathlib import Path
from typing import Optional, Union

from .base import WAR, EAR, Deployable
from .exceptions import UnsupportedArtifactType


def artifact_extension(path: Union[str, Path]) -> str:
    """Extension without the dot, as written ("" when there is none)."""
    return os.path.splitext(str(path))[1][1:]


def package(path: Union[str, Path], context_path: Optional[str] = None) -> Deployable:
    """
    Build the deployable for ``path``.

    Args:
        path: Artifact file; existence is not checked here
        context_path: Context path for web archives (ignored for EARs)

    Returns:
        WAR or EAR deployable carrying the absolute artifact path

    Raises:
        UnsupportedArtifactType: Extension is neither war nor ear (any case)
    """
    extension = artifact_extension(path)
    absolute = os.path.abspath(str(path))

    if extension.lower() == "war":
        if context_path:
            return WAR(absolute, context=context_path)
        return WAR(absolute)

    if extension.lower() == "ear":
        return EAR(absolute)

    raise UnsupportedArtifactType(extension)
