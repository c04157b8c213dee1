"""Storage for user uploads on the local filesystem."""
from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from zenshift.core.errors import PayloadTooLarge, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    file_name: str
    path: str

    @property
    def url(self) -> str:
        return f"/uploads/{self.file_name}"


def _extension(filename: str | None) -> str:
    _, ext = os.path.splitext(os.path.basename(filename or ""))
    ext = ext.lower()
    if not ext[1:].isalnum():
        return ""
    return ext


class FileService:
    def __init__(self, uploads_dir: str, max_bytes: int):
        self.uploads_dir = uploads_dir
        self.max_bytes = max_bytes

    def check(self, data: bytes) -> None:
        if not data:
            raise ValidationError("No file uploaded")
        if len(data) > self.max_bytes:
            raise PayloadTooLarge("File is too large")

    def _candidates(self, filename: str | None):
        stamp = int(time.time() * 1000)
        ext = _extension(filename)
        yield f"file-{stamp}{ext}"
        suffix = 1
        while True:
            yield f"file-{stamp}-{suffix}{ext}"
            suffix += 1

    def save(self, filename: str | None, data: bytes) -> StoredFile:
        self.check(data)
        os.makedirs(self.uploads_dir, exist_ok=True)
        for name in self._candidates(filename):
            path = os.path.join(self.uploads_dir, name)
            try:
                # "x" fails if another upload already claimed the name
                with open(path, "xb") as f:
                    f.write(data)
            except FileExistsError:
                continue
            logger.info("Stored upload %s (%d bytes)", name, len(data))
            return StoredFile(file_name=name, path=path)

    def save_many(self, items: list[tuple[str | None, bytes]]) -> list[StoredFile]:
        """Store every upload or none of them."""
        for _, data in items:
            self.check(data)
        stored: list[StoredFile] = []
        try:
            for filename, data in items:
                stored.append(self.save(filename, data))
        except OSError:
            for item in stored:
                os.remove(item.path)
            raise
        return stored
