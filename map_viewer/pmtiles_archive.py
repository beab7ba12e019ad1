#!/usr/bin/env python3
"""
Remote PMTiles archive access.

Reads a PMTiles v3 archive over HTTP range requests (requests) and decodes
its directory structure with the pmtiles reader. Tile payloads are returned
decompressed; vector_tiles decodes them. A server that ignores the Range
header is reported as SourceLoadError rather than downloaded whole per read.

Usage:
    archive = PMTilesArchive("https://example.org/tiles.pmtiles")
    data = archive.get_tile(0, 0, 0)
"""

from typing import Any, Dict, Optional
import gzip
import logging
import struct

import requests
from pmtiles.reader import Reader
from pmtiles.tile import Compression

from map_viewer.source_lifecycle import SourceLoadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class HttpRangeSource:
    """get_bytes(offset, length) callable backed by HTTP range requests."""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self, offset: int, length: int) -> bytes:
        headers = {"Range": f"bytes={offset}-{offset + length - 1}"}
        response = self.session.get(self.url, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        if response.status_code != 206:
            # A 200 carries the whole archive; reading it per request is not viable
            logger.warning(f"⚠️ {self.url} ignored the Range header (HTTP {response.status_code})")
            raise SourceLoadError(
                self.url, f"Server does not support range requests (HTTP {response.status_code})"
            )
        return response.content


class PMTilesArchive:
    """
    Lazily opened remote PMTiles archive.

    Every network or format failure is raised as SourceLoadError.
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.url = url
        self._reader = Reader(HttpRangeSource(url, session=session, timeout=timeout))
        self._header: Optional[Dict[str, Any]] = None

    def header(self) -> Dict[str, Any]:
        """Archive header (zoom range, bounds, compression)."""
        if self._header is None:
            self._header = self._read(self._reader.header)
            logger.info(
                f"🗂️ Opened {self.url}: zoom {self._header.get('min_zoom')}"
                f"-{self._header.get('max_zoom')}"
            )
        return self._header

    def metadata(self) -> Dict[str, Any]:
        return self._read(self._reader.metadata)

    def bounds(self):
        """(min_lon, min_lat, max_lon, max_lat) declared by the archive."""
        header = self.header()
        return (
            header["min_lon_e7"] / 1e7,
            header["min_lat_e7"] / 1e7,
            header["max_lon_e7"] / 1e7,
            header["max_lat_e7"] / 1e7,
        )

    def get_tile(self, z: int, x: int, y: int) -> Optional[bytes]:
        """Decompressed tile payload, or None if the archive has no such tile."""
        header = self.header()
        data = self._read(lambda: self._reader.get(z, x, y))
        if data is None:
            return None
        if header.get("tile_compression") == Compression.GZIP:
            try:
                return gzip.decompress(data)
            except (OSError, EOFError) as e:
                raise SourceLoadError(self.url, f"Corrupt tile {z}/{x}/{y}: {e}") from e
        return data

    def _read(self, operation):
        try:
            return operation()
        except requests.RequestException as e:
            raise SourceLoadError(self.url, f"Tile fetch failed: {e}") from e
        except (ValueError, KeyError, struct.error, OSError) as e:
            raise SourceLoadError(self.url, f"Invalid PMTiles archive: {e}") from e
