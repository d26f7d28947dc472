import asyncio
from pathlib import Path
from typing import List, Optional

import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)


def _write_new(target: Path, data: bytes, path: str) -> None:
    if target.exists():
        raise FileExistsError(f"Object already exists: {path}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def _list_files(directory: Path) -> List[str]:
    if not directory.is_dir():
        return []
    return sorted(p.name for p in directory.iterdir() if p.is_file())


def _unlink_files(targets: List[Path]) -> int:
    removed = 0
    for target in targets:
        if target.is_file():
            target.unlink()
            removed += 1
    return removed


class ObjectStorage:
    """Bucket-style object storage on the local filesystem.

    Objects live under ``<root>/<bucket>/<path>`` and are published at
    ``<public_url>/<bucket>/<path>`` by the static mount in ``app.main``.
    """

    def __init__(self, root: str, bucket: str, public_url: str):
        self.root = Path(root)
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    @property
    def bucket_path(self) -> Path:
        return self.root / self.bucket

    def _resolve(self, path: str) -> Path:
        base = self.bucket_path.resolve()
        target = (base / path).resolve()
        if base != target and base not in target.parents:
            raise ValueError(f"Object path escapes bucket: {path}")
        return target

    async def upload(self, path: str, data: bytes) -> str:
        """Store a new object. Existing objects are never overwritten."""
        target = self._resolve(path)
        await asyncio.to_thread(_write_new, target, data, path)

        logger.info("Object uploaded", bucket=self.bucket, path=path, size=len(data))
        return path

    def get_public_url(self, path: str) -> Optional[str]:
        if not path:
            return None
        return f"{self.public_url}/{self.bucket}/{path}"

    async def list(self, prefix: str) -> List[str]:
        """List object names directly under a prefix."""
        return await asyncio.to_thread(_list_files, self._resolve(prefix))

    async def remove(self, paths: List[str]) -> int:
        targets = [self._resolve(path) for path in paths]
        removed = await asyncio.to_thread(_unlink_files, targets)

        logger.info("Objects removed", bucket=self.bucket, count=removed)
        return removed


def get_storage() -> ObjectStorage:
    """Dependency returning the configured avatar storage."""
    return ObjectStorage(
        root=settings.UPLOAD_PATH,
        bucket=settings.STORAGE_BUCKET,
        public_url=settings.STORAGE_PUBLIC_URL,
    )
