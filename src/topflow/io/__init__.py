from topflow.io.resolvers import MappingIncluder, SearchPathIncluder, path_includer
from topflow.io.sources import (
    BlobSource,
    ContentSource,
    InputSource,
    NoInput,
    PathSource,
    StreamSource,
    as_source,
    describe_source,
    iter_lines,
)

__all__ = [
    # from sources
    "BlobSource",
    "ContentSource",
    "InputSource",
    "NoInput",
    "PathSource",
    "StreamSource",
    "as_source",
    "describe_source",
    "iter_lines",
    # from resolvers
    "MappingIncluder",
    "SearchPathIncluder",
    "path_includer",
]
