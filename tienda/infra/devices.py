"""File, clipboard and share boundaries.

On a phone these are OS pickers and share sheets; here they are small
objects the screens receive from the service context, so a web upload or a
test can stand in for the user picking a file.
"""
import asyncio
import base64
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)


# --- file ----------------------------------------------------------------------
class FilePicker(ABC):
    """Returns the chosen file, or None when the user cancels."""

    @abstractmethod
    async def pick(self, mime_types: Sequence[str] = ()) -> Optional[Path]: ...


class PresetFilePicker(FilePicker):
    """Answers every pick with a fixed file (an upload already on disk) or a cancel."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None

    async def pick(self, mime_types: Sequence[str] = ()) -> Optional[Path]:
        return self.path


class FileStore:
    """Reads picked files and writes text into the cache directory."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    async def read_base64(self, path: Path) -> str:
        data = await asyncio.to_thread(Path(path).read_bytes)
        return base64.b64encode(data).decode('ascii')

    async def write_cache(self, filename: str, text: str) -> Path:
        target = self.cache_dir / filename

        def _write() -> None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding='utf-8')

        await asyncio.to_thread(_write)
        logger.info(f"Wrote {len(text)} characters to {target}")
        return target


# --- clipboard / share -------------------------------------------------------------
class Clipboard(ABC):
    @abstractmethod
    async def copy(self, text: str) -> None: ...


class MemoryClipboard(Clipboard):
    """Keeps the last copied text (served back to the web client)."""

    def __init__(self):
        self.text: Optional[str] = None

    async def copy(self, text: str) -> None:
        self.text = text


class ShareSink(ABC):
    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    async def share(self, uri: str) -> None: ...


class LocalShare(ShareSink):
    """Shares by URI when the file exists on disk; keeps a list of shared URIs."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.shared: List[str] = []

    def is_available(self) -> bool:
        # The cache directory is created on first write; check the closest existing ancestor
        target = self.cache_dir
        while not target.exists() and target != target.parent:
            target = target.parent
        return os.access(target, os.W_OK)

    async def share(self, uri: str) -> None:
        path = Path(unquote(urlparse(uri).path)) if uri.startswith('file:') else Path(uri)
        if not path.exists():
            raise FileNotFoundError(f"Nothing to share at {uri}")
        self.shared.append(uri)
        logger.info(f"Shared {uri}")
