from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from jobtrack.auth import Identity
from jobtrack.core.constants import RESUME_CONTENT_TYPE, RESUME_FILENAME
from jobtrack.errors import AuthRequiredError, ResumeValidationError, StoreError

logger = logging.getLogger(__name__)


def resume_object_path(user_id: str, application_id: str) -> str:
    return f"{user_id}/{application_id}/{RESUME_FILENAME}"


def validate_resume_file(content_type: str, size: int, max_bytes: int) -> None:
    if content_type != RESUME_CONTENT_TYPE:
        raise ResumeValidationError("Only PDF files are accepted")
    if size > max_bytes:
        raise ResumeValidationError(f"Resume exceeds the {max_bytes} byte limit")


class LocalResumeStorage:
    """Filesystem-backed object store keyed by relative POSIX paths."""

    def __init__(self, root: Path):
        self.root = root

    def _resolve(self, object_path: str) -> Path:
        relative = PurePosixPath(object_path)
        if relative.is_absolute() or ".." in relative.parts:
            raise StoreError(f"invalid object path '{object_path}'")
        return self.root.joinpath(*relative.parts)

    async def upload(self, object_path: str, content: bytes, *, content_type: str = RESUME_CONTENT_TYPE) -> str:
        if content_type != RESUME_CONTENT_TYPE:
            raise StoreError(f"unsupported content type '{content_type}'")
        target = self._resolve(object_path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StoreError(str(exc)) from exc
        logger.info("Stored resume object %s (%d bytes)", object_path, len(content))
        return object_path

    async def download(self, object_path: str) -> bytes:
        target = self._resolve(object_path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StoreError(str(exc)) from exc

    async def remove(self, object_paths: Iterable[str]) -> None:
        targets = [self._resolve(path) for path in object_paths]

        def _unlink() -> None:
            for target in targets:
                target.unlink(missing_ok=True)

        try:
            await asyncio.to_thread(_unlink)
        except OSError as exc:
            raise StoreError(str(exc)) from exc


class ResumeUploader:
    def __init__(self, storage: LocalResumeStorage, identity: Identity, *, max_bytes: int):
        self.storage = storage
        self.identity = identity
        self.max_bytes = max_bytes
        self.is_uploading = False

    async def upload(self, application_id: str, content: bytes, content_type: str) -> str:
        validate_resume_file(content_type, len(content), self.max_bytes)

        user_id = await self.identity.get_user_id()
        if not user_id:
            raise AuthRequiredError()

        self.is_uploading = True
        try:
            return await self.storage.upload(
                resume_object_path(user_id, application_id),
                content,
                content_type=content_type,
            )
        finally:
            self.is_uploading = False
