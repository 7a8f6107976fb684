"""Case-insensitive HTTP headers.

``Headers`` is the immutable request side: raw byte pairs from the ASGI
scope, decoded on access. ``ResponseHeaders`` is the mutable response
side a request context builds up while filters and handlers run.
"""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value.decode("latin-1")
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower().encode("latin-1")
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower().encode("latin-1")
        return [value.decode("latin-1") for name, value in self._raw if name.lower() == key_lower]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Access raw header byte pairs for ASGI compatibility."""
        return self._raw


class ResponseHeaders(MutableMapping[str, str]):
    """Mutable, case-insensitive, order-preserving response headers.

    Assignment replaces every existing value for the name; ``add``
    appends another value (for headers that may repeat, like ``Link``).
    The original spelling of each name is kept for the wire.
    """

    __slots__ = ("_items",)

    def __init__(self, initial: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = []
        pairs = initial.items() if isinstance(initial, Mapping) else initial
        for name, value in pairs:
            self.add(name, value)

    def __getitem__(self, key: str) -> str:
        lowered = key.lower()
        for name, value in self._items:
            if name.lower() == lowered:
                return value
        raise KeyError(key)

    def __setitem__(self, key: str, value: str) -> None:
        lowered = key.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != lowered]
        self._items.append((key, str(value)))

    def __delitem__(self, key: str) -> None:
        lowered = key.lower()
        kept = [(n, v) for n, v in self._items if n.lower() != lowered]
        if len(kept) == len(self._items):
            raise KeyError(key)
        self._items = kept

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._items:
            lowered = name.lower()
            if lowered not in seen:
                seen.add(lowered)
                yield name

    def __len__(self) -> int:
        return len({name.lower() for name, _ in self._items})

    def __repr__(self) -> str:
        return f"ResponseHeaders({self._items!r})"

    def add(self, name: str, value: str) -> None:
        """Append a value without replacing existing ones."""
        self._items.append((name, str(value)))

    def pairs(self) -> tuple[tuple[str, str], ...]:
        """All (name, value) pairs in insertion order, repeats included."""
        return tuple(self._items)
