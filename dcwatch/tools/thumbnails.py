import os
from pathlib import Path
import httpx
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger
from dcwatch.errors import EnrichmentUnavailable

class ThumbnailCache:
    """Local copy of video thumbnails, one file per external id."""

    def __init__(self, directory: Path, client: httpx.AsyncClient | None = None):
        self.directory = Path(directory)
        self.client = client

    def path_for(self, external_id: str) -> Path:
        # Ids are used as file names as-is, so only URL-safe ids are accepted
        if not external_id or any(not (c.isalnum() or c in "-_") for c in external_id):
            raise ValueError(f"Unsafe thumbnail id: {external_id!r}")
        return self.directory / f"{external_id}.jpg"

    async def ensure(self, external_id: str, remote_url: str | None) -> str | None:
        """Local path of the cached thumbnail, downloading once. None on any failure."""
        if not external_id or not remote_url:
            return None
        try:
            path = self.path_for(external_id)
        except ValueError as e:
            logger.warning(f"Skipping thumbnail: {e}")
            return None
        if path.exists():
            return str(path)

        tmp_path = path.with_suffix(".part")
        try:
            async with http_session(self.client) as client:
                resp = await client.get(remote_url)
                if resp.status_code < 200 or resp.status_code >= 300:
                    raise EnrichmentUnavailable(f"HTTP {resp.status_code}")
                self.directory.mkdir(parents=True, exist_ok=True)
                tmp_path.write_bytes(resp.content)
                os.replace(tmp_path, path)
            return str(path)
        except Exception as e:
            logger.warning(f"Thumbnail download failed for {external_id}: {e}")
            tmp_path.unlink(missing_ok=True)
            return None
