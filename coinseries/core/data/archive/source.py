"""Byte sources for the bundled historical archive."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from coinseries.core.exceptions import LoadError


class ArchiveSource(ABC):
    """Something that can hand over the raw archive bytes."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Human readable origin used in logs and errors."""

    @abstractmethod
    async def read(self) -> bytes:
        """Return the archive contents, raising :class:`LoadError` on failure."""


class FileArchiveSource(ArchiveSource):
    """Archive stored on the local filesystem."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    async def read(self) -> bytes:
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except OSError as exc:
            raise LoadError(f"Unable to read archive '{self.path}': {exc}", self.location) from exc


class HttpArchiveSource(ArchiveSource):
    """Archive served over HTTP, e.g. as a static asset next to the app."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @property
    def location(self) -> str:
        return self.url

    async def read(self) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as exc:
            raise LoadError(f"Unable to download archive: {exc}", self.location) from exc

        if not response.is_success:
            raise LoadError(
                f"Archive request failed with status {response.status_code}",
                self.location,
                {"status_code": response.status_code},
            )
        return response.content


class StaticArchiveSource(ArchiveSource):
    """Archive contents already held in memory."""

    def __init__(self, content: bytes | str, location: str = "<memory>") -> None:
        self._content = content.encode("utf-8") if isinstance(content, str) else content
        self._location = location

    @property
    def location(self) -> str:
        return self._location

    async def read(self) -> bytes:
        return self._content


__all__ = ["ArchiveSource", "FileArchiveSource", "HttpArchiveSource", "StaticArchiveSource"]
