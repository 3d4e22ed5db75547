"""Object store used to hand archives to the signing service.

- ObjectStore: Protocol (put bytes under a key, get bytes from a location)
- S3ObjectStore: ``aws s3 cp`` through the aws CLI
- MemoryObjectStore: in-process store for tests
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from deskrel.core.result import Err, Ok, Result
from deskrel.platform.process import run as run_process

from ..timeouts import STORE_TIMEOUT_SECONDS

__all__ = ["ObjectStore", "StoreError", "S3ObjectStore", "MemoryObjectStore"]


@dataclass(frozen=True, slots=True)
class StoreError:
    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.location})"


@runtime_checkable
class ObjectStore(Protocol):
    """Opaque keys in, caller-addressable locations out. Put overwrites."""

    def put(self, key: str, data: bytes) -> Result[str, StoreError]:
        """Store data under key and return its location."""
        ...

    def get(self, location: str) -> Result[bytes, StoreError]:
        """Fetch the object at a location returned by put or by the signing service."""
        ...


class S3ObjectStore:
    """S3 store driven through the aws CLI (credentials come from the environment)."""

    def __init__(self, bucket: str, *, cwd: Path, region: str | None = None) -> None:
        self.bucket = bucket
        self._cwd = cwd
        self._region = region

    def location_for(self, key: str) -> str:
        return f"s3://{self.bucket}/{key.lstrip('/')}"

    def put(self, key: str, data: bytes) -> Result[str, StoreError]:
        location = self.location_for(key)
        with tempfile.TemporaryDirectory(prefix="deskrel-") as tmp:
            src = Path(tmp) / "upload.bin"
            src.write_bytes(data)
            copied = self._cp(str(src), location)
        if isinstance(copied, Err):
            return copied
        return Ok(location)

    def get(self, location: str) -> Result[bytes, StoreError]:
        with tempfile.TemporaryDirectory(prefix="deskrel-") as tmp:
            dest = Path(tmp) / "download.bin"
            copied = self._cp(location, str(dest))
            if isinstance(copied, Err):
                return copied
            try:
                return Ok(dest.read_bytes())
            except OSError as e:
                return Err(StoreError(location=location, message=f"download unreadable: {e}"))

    def _cp(self, src: str, dest: str) -> Result[None, StoreError]:
        cmd = ["aws", "s3", "cp", "--quiet", src, dest]
        if self._region:
            cmd += ["--region", self._region]
        result = run_process(cmd, cwd=self._cwd, timeout=STORE_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            remote = dest if dest.startswith("s3://") else src
            return Err(StoreError(location=remote, message=e.stderr.strip() or str(e)))
        return Ok(None)


def _empty_objects() -> dict[str, bytes]:
    return {}


@dataclass
class MemoryObjectStore:
    """In-memory store. Locations are ``memory://<key>``."""

    objects: dict[str, bytes] = field(default_factory=_empty_objects)
    puts: int = 0
    gets: int = 0

    def location_for(self, key: str) -> str:
        return f"memory://{key}"

    def put(self, key: str, data: bytes) -> Result[str, StoreError]:
        self.puts += 1
        location = self.location_for(key)
        self.objects[location] = data
        return Ok(location)

    def get(self, location: str) -> Result[bytes, StoreError]:
        self.gets += 1
        data = self.objects.get(location)
        if data is None:
            return Err(StoreError(location=location, message="no such object"))
        return Ok(data)
