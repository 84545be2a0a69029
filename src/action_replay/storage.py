"""
Durable storage boundary for action logs.

The sink only needs three primitives: ensure a directory exists, write a
whole file, and read a whole file. FileLogStorage implements them on the
local filesystem with aiofiles.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os


class LogStorage(Protocol):
    """Storage primitives used by the action sink."""

    async def ensure_directory(self, path: str | Path) -> None: ...
    async def write_text(self, path: str | Path, content: str) -> None: ...
    async def read_text(self, path: str | Path) -> str: ...


class FileLogStorage:
    """Local filesystem storage (UTF-8 text files)."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def ensure_directory(self, path: str | Path) -> None:
        if not str(path):
            return
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def write_text(self, path: str | Path, content: str) -> None:
        async with aiofiles.open(path, "w", encoding=self.encoding) as f:
            await f.write(content)

    async def read_text(self, path: str | Path) -> str:
        async with aiofiles.open(path, "r", encoding=self.encoding) as f:
            return await f.read()


__all__ = ["LogStorage", "FileLogStorage"]
