"""
Open-document tracking.

Keeps the set of documents announced to the language server with
textDocument/didOpen, and a per-document version that increases by one on
every change.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from core.exceptions import DocumentNotFoundError

from .gateway import RequestGateway
from .types import get_language_id, path_to_uri

logger = logging.getLogger(__name__)


@dataclass
class DocumentHandle:
    """An opened file as seen by the language server."""
    uri: str
    language_id: str
    version: int = 0
    is_open: bool = True


class DocumentTracker:
    """Sends document lifecycle notifications and tracks open documents."""

    def __init__(self, gateway: RequestGateway):
        self.gateway = gateway
        self._documents: dict[str, DocumentHandle] = {}
        self._lock = asyncio.Lock()

    def is_open(self, path: str | Path) -> bool:
        try:
            uri = path_to_uri(path)
        except DocumentNotFoundError:
            return False
        return uri in self._documents

    def version(self, uri: str) -> int | None:
        handle = self._documents.get(uri)
        return handle.version if handle else None

    def open_uris(self) -> list[str]:
        return sorted(self._documents)

    async def open(self, path: str | Path) -> str:
        """Send textDocument/didOpen for a file and track it.

        Re-opening a document that is already open re-sends didOpen with the
        current file content and the current version.

        Args:
            path: Path to the file

        Returns:
            The document's canonical URI

        Raises:
            DocumentNotFoundError: If the file does not exist or cannot be read
        """
        uri = path_to_uri(path)
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentNotFoundError(str(path), f"failed to read: {e}") from e

        async with self._lock:
            handle = self._documents.get(uri)
            if handle is None:
                handle = DocumentHandle(uri=uri, language_id=get_language_id(path))
            else:
                logger.debug("Re-opening %s at version %d", uri, handle.version)

            await self.gateway.notify(
                "textDocument/didOpen",
                {
                    "textDocument": {
                        "uri": uri,
                        "languageId": handle.language_id,
                        "version": handle.version,
                        "text": content,
                    }
                },
            )
            self._documents[uri] = handle
        return uri

    async def ensure_open(self, path: str | Path) -> str:
        """Open the document unless it is already tracked."""
        uri = path_to_uri(path)
        if uri in self._documents:
            return uri
        return await self.open(path)

    async def change(self, path: str | Path, new_content: str) -> None:
        """Replace the whole content of an open document.

        Raises:
            DocumentNotFoundError: If the document is not open
        """
        uri = path_to_uri(path)
        async with self._lock:
            handle = self._documents.get(uri)
            if handle is None:
                raise DocumentNotFoundError(str(path), "document is not open")

            version = handle.version + 1
            await self.gateway.notify(
                "textDocument/didChange",
                {
                    "textDocument": {"uri": uri, "version": version},
                    "contentChanges": [{"text": new_content}],
                },
            )
            handle.version = version

    async def close(self, path: str | Path) -> None:
        """Send textDocument/didClose and forget the document.

        The notification is sent even if the document is not tracked or no
        longer exists on disk.
        """
        uri = path_to_uri(path, strict=False)
        async with self._lock:
            handle = self._documents.pop(uri, None)
            if handle is not None:
                handle.is_open = False
            await self.gateway.notify("textDocument/didClose", {"textDocument": {"uri": uri}})
