"""Immutable query string (and url-encoded form) parameters.

Implements ``Mapping[str, str]``; repeated keys keep every value.
"""

from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    Attributes:
        _data: Parsed query string as field name -> list of values.
        _raw: Raw query string bytes.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    ``to_params`` flattens into the shape route handlers see.
    """

    _data: dict[str, list[str]]
    _raw: bytes

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        object.__setattr__(self, "_raw", query_string)
        parsed = parse_qs(query_string.decode("latin-1"), keep_blank_values=True)
        object.__setattr__(self, "_data", parsed)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def to_params(self) -> dict[str, Any]:
        """Flatten into a params dict.

        Single values stay strings; repeated keys become lists. A key
        spelled ``name[]`` is always a list, stored under ``name``::

            a=1&b=2&b=3&c[]=4  ->  {"a": "1", "b": ["2", "3"], "c": ["4"]}
        """
        params: dict[str, Any] = {}
        for key, values in self._data.items():
            if key.endswith("[]"):
                existing = params.get(key[:-2], [])
                if not isinstance(existing, list):
                    existing = [existing]
                params[key[:-2]] = [*existing, *values]
            elif len(values) == 1:
                params[key] = values[0]
            else:
                params[key] = list(values)
        return params

    @property
    def raw(self) -> bytes:
        return self._raw
