"""
Static asset serving for the browser UI, with single-page-app fallback.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi.responses import FileResponse

from shared.logging import get_logger

INDEX_FILE = "index.html"


class AssetServer:
    """Serves files from a directory; extension-less misses get ``index.html``."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()
        self.logger = get_logger("gateway.assets")

    def _lookup(self, relative: str) -> Optional[Path]:
        candidate = (self.root / relative.lstrip("/")).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        if candidate.is_dir():
            candidate = candidate / INDEX_FILE
        return candidate if candidate.is_file() else None

    def resolve(self, path: str) -> Optional[Path]:
        """Map a request path to a file, applying the SPA fallback."""
        found = self._lookup(path)
        if found is not None:
            return found
        if PurePosixPath(path).suffix:
            return None
        return self._lookup(INDEX_FILE)

    def response(self, path: str) -> Optional[FileResponse]:
        found = self.resolve(path)
        if found is None:
            self.logger.debug("Asset not found", path=path)
            return None
        return FileResponse(found)
