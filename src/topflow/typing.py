from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from topflow.io.sources import InputSource

LineIterator: TypeAlias = Iterator[str]  # Type alias for line iterators

# Value stored for a `#define NAME [VALUE]` symbol.
DefineValue: TypeAlias = bool | int | float | str


class Includer(Protocol):
    """Protocol for include resolvers.

    Called with the name found between quotes on an `#include` line. Must return
    an `InputSource`, or any value accepted by `topflow.io.sources.as_source`.

    Resolvers are called synchronously. Fetch asynchronous content beforehand and return
    it as a `ContentSource` or `BlobSource`; an awaitable result is rejected as an include error.
    """

    def __call__(self, name: str) -> "InputSource | Any":
        """Return where the lines of the included file come from."""
        ...
