"""Artifact reader - turn a file on disk into an Artifact.

PDFs and images are base64-encoded; everything else is read as UTF-8.
"""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

from agent_orchestrator.core.constants import is_binary_mime_type
from agent_orchestrator.core.exceptions import ArtifactReadError, ArtifactTooLargeError
from agent_orchestrator.models.agents import Artifact


DEFAULT_MIME_TYPE = "text/plain"

# Types the stdlib table may not know on every platform
_EXTRA_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".json": "application/json",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
    ".webp": "image/webp",
}


def guess_mime_type(name: str) -> str:
    suffix = Path(name).suffix.lower()
    if suffix in _EXTRA_TYPES:
        return _EXTRA_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


class ArtifactReader:
    """Reads files into artifacts, enforcing a size limit.

    Attributes:
        max_bytes: Largest accepted file size.
    """

    def __init__(self, max_bytes: int = 10 * 1024 * 1024) -> None:
        self.max_bytes = max_bytes

    def read(self, path: Path | str) -> Artifact:
        """Read ``path`` into an Artifact.

        Raises:
            ArtifactTooLargeError: File exceeds ``max_bytes``.
            ArtifactReadError: File missing, unreadable, or not valid UTF-8 text.
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ArtifactReadError(f"Cannot read {path.name}: {e}", path=str(path)) from e

        if size > self.max_bytes:
            raise ArtifactTooLargeError(
                f"{path.name} is {size} bytes; the limit is {self.max_bytes}",
                path=str(path),
                size=size,
                limit=self.max_bytes,
            )

        mime_type = guess_mime_type(path.name)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ArtifactReadError(f"Cannot read {path.name}: {e}", path=str(path)) from e

        if is_binary_mime_type(mime_type):
            content = base64.b64encode(raw).decode("ascii")
        else:
            try:
                content = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ArtifactReadError(f"{path.name} is not UTF-8 text", path=str(path)) from e

        return Artifact(name=path.name, mime_type=mime_type, content=content)


__all__ = ["ArtifactReader", "guess_mime_type"]
