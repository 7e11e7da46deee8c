"""Resolve artifacts to files under a local reports directory."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional, Union

from ..models import ArtifactRef
from .memory import InMemoryCatalog


def is_safe_path(base_dir: Path, path: Path) -> bool:
    """Return True when ``path`` stays inside ``base_dir``."""
    try:
        return path.resolve().is_relative_to(base_dir.resolve())
    except (ValueError, OSError):
        return False


class LocalFileResolver:
    """Map an artifact's storage key onto a file in ``files_dir``.

    Only the basename of the storage key is used. The file is not required
    to exist; delivery is handled by the caller.
    """

    def __init__(self, catalog: InMemoryCatalog, files_dir: Union[str, Path]) -> None:
        self.catalog = catalog
        self.files_dir = Path(files_dir)

    async def resolve_artifact(self, artifact_id: str) -> Optional[ArtifactRef]:
        artifact = await self.catalog.find_artifact(artifact_id)
        if artifact is None:
            return None

        filename = PurePosixPath(artifact.storage_key.replace("\\", "/")).name
        if filename in ("", ".", ".."):
            return None

        path = self.files_dir / filename
        if not is_safe_path(self.files_dir, path):
            return None
        return ArtifactRef(artifact_id=artifact.artifact_id, title=artifact.title, location=str(path))
