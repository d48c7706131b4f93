"""Input descriptors and the line source adapter.

An input is described by exactly one of the `InputSource` variants. `iter_lines`
matches on the variant and yields the text lines of the input, with line
terminators removed.
"""

import io
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, TypeAlias

from topflow.typing import LineIterator
from topflow.utils import logger


@dataclass(frozen=True)
class PathSource:
    """Lines are read from a file on disk."""

    path: str | os.PathLike[str]


@dataclass(frozen=True)
class StreamSource:
    """Lines are read from an open text or binary file object. Consumed once."""

    stream: IO[Any] = field(repr=False)


@dataclass(frozen=True)
class ContentSource:
    """Lines are taken from an in-memory string."""

    content: str = field(repr=False)


@dataclass(frozen=True)
class BlobSource:
    """Lines are decoded from a bytes-like object, or from an object whose `read()` returns bytes."""

    data: Any = field(repr=False)


@dataclass(frozen=True)
class NoInput:
    """Explicit "nothing to read". Returned by include resolvers to skip an include silently."""

    pass


InputSource: TypeAlias = PathSource | StreamSource | ContentSource | BlobSource | NoInput


def as_source(obj: Any) -> InputSource:
    """Coerces a convenience value into an `InputSource`.

    Args:
        obj: An `InputSource`, a path (`str` or `os.PathLike`), a bytes-like object,
            a file object, or None.

    Returns:
        The matching `InputSource` variant.

    Raises:
        TypeError: If the value cannot describe an input.
    """
    if isinstance(obj, PathSource | StreamSource | ContentSource | BlobSource | NoInput):
        return obj
    if obj is None:
        return NoInput()
    if isinstance(obj, str | os.PathLike):
        return PathSource(obj)
    if isinstance(obj, bytes | bytearray | memoryview):
        return BlobSource(obj)
    if hasattr(obj, "read"):
        return StreamSource(obj)
    raise TypeError(f"Cannot use object of type {type(obj).__name__} as a topology input.")


def describe_source(source: InputSource) -> str:
    """Short human-readable name of a source, used in log and error messages."""
    if isinstance(source, PathSource):
        return Path(source.path).name
    if isinstance(source, StreamSource):
        return str(getattr(source.stream, "name", "<stream>"))
    if isinstance(source, ContentSource):
        return "<string>"
    if isinstance(source, BlobSource):
        return str(getattr(source.data, "name", "<blob>"))
    return "<none>"


def _iter_path(path: str | os.PathLike[str], encoding: str) -> LineIterator:
    # Missing files fail on call. The file itself is only opened by the first next().
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Topology file not found: {file_path}")
    return _iter_file(file_path, encoding)


def _iter_file(file_path: Path, encoding: str) -> LineIterator:
    with file_path.open(encoding=encoding, newline=None) as f:
        for line in f:
            yield line.rstrip("\r\n")


def _iter_stream(stream: IO[Any], encoding: str) -> LineIterator:
    for raw in stream:
        line = raw.decode(encoding) if isinstance(raw, bytes | bytearray) else raw
        yield line.rstrip("\r\n")


def _iter_text(text: str) -> LineIterator:
    # io.StringIO gives the same universal newline handling as files on disk.
    for line in io.StringIO(text, newline=None):
        yield line.rstrip("\r\n")


def _iter_blob(data: Any, encoding: str) -> LineIterator:
    if isinstance(data, bytes | bytearray | memoryview):
        raw = bytes(data)
    elif hasattr(data, "read"):
        raw = data.read()
    else:
        raise TypeError(f"Blob input must be bytes-like or expose read(), got {type(data).__name__}.")

    text = raw.decode(encoding) if isinstance(raw, bytes | bytearray) else str(raw)
    yield from _iter_text(text)


def iter_lines(source: InputSource, encoding: str = "utf-8") -> Iterator[str] | None:
    """Returns an iterator over the text lines of `source`.

    A fresh iterator is built on every call, so path, content and blob sources can be
    read again. Streams are consumed by the first full iteration.

    Args:
        source: The input descriptor.
        encoding: Encoding used to decode files, binary streams and blobs.

    Returns:
        An iterator of lines without terminators, or None for `NoInput`.
    """
    if isinstance(source, PathSource):
        logger.debug(f"Opening line source from path: {source.path}")
        return _iter_path(source.path, encoding)
    if isinstance(source, StreamSource):
        return _iter_stream(source.stream, encoding)
    if isinstance(source, ContentSource):
        return _iter_text(source.content)
    if isinstance(source, BlobSource):
        return _iter_blob(source.data, encoding)
    if isinstance(source, NoInput):
        return None
    raise TypeError(f"Unknown input source variant: {type(source).__name__}")
