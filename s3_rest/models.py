from __future__ import annotations
"""Data models produced by the S3 REST client."""
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


@dataclass(frozen=True)
class Bucket:
    """A bucket as reported by the service listing."""

    name: str
    creation_date: str = ""


@dataclass(frozen=True)
class Item:
    """A single object key returned by a bucket listing."""

    key: str
    last_modified: str = ""
    size: int = 0


@dataclass(frozen=True)
class ListPage:
    """One decoded page of a bucket listing, validated before its items are used."""

    items: tuple[Item, ...] = ()
    is_truncated: bool = False
    max_keys: int = 0
    name: str = ""
    marker: str = ""
    prefix: str = ""


@dataclass(frozen=True)
class ErrorDocument:
    """Fields of an XML ``<Error>`` body. All fields are empty when the body is not XML."""

    code: str = ""
    message: str = ""
    request_id: str = ""
    bucket: str = ""
    endpoint: str = ""
    string_to_sign_bytes: str = ""


@dataclass(frozen=True)
class ObjectStat:
    """Metadata of an object that exists."""

    bucket: str
    key: str
    size: int

    found = True


@dataclass(frozen=True)
class NotFound:
    """Outcome of an object lookup the service answered with 404."""

    bucket: str
    key: str

    found = False
    size = 0

    def __bool__(self) -> bool:
        return False


@dataclass
class ObjectBody:
    """Readable object content. The caller must close it."""

    bucket: str
    key: str
    stream: BinaryIO = field(repr=False)
    size: int = -1
    status: Optional[int] = None

    found = True

    def read(self, amt: Optional[int] = None) -> bytes:
        if amt is None:
            return self.stream.read()
        return self.stream.read(amt)

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "ObjectBody":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
