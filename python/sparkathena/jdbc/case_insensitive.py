"""Case-insensitive option map that remembers how keys were spelled."""

from typing import Dict, Iterator, Mapping, Optional


class CaseInsensitiveMap(Mapping[str, str]):
    """
    Read-only mapping with case-insensitive keys.

    Spark passes option names in whatever case the user typed
    (``numPartitions``, ``NUMPARTITIONS``...). Lookups go through a lowercase
    index, while iteration and ``original`` keep the caller's spelling so the
    options can be forwarded to a JDBC driver untouched.

    When the input holds several spellings of the same key, the last one wins.
    """

    def __init__(self, options: Optional[Mapping[str, str]] = None):
        self._original: Dict[str, str] = {}
        self._index: Dict[str, str] = {}
        for key, value in (options or {}).items():
            self._put(key, value)

    def _put(self, key: str, value: str) -> None:
        lowered = key.lower()
        previous = self._index.get(lowered)
        if previous is not None:
            del self._original[previous]
        self._index[lowered] = key
        self._original[key] = value

    def __getitem__(self, key: str) -> str:
        return self._original[self._index[key.lower()]]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._original)

    def __len__(self) -> int:
        return len(self._original)

    def __repr__(self) -> str:
        return f"CaseInsensitiveMap({self._original!r})"

    @property
    def original(self) -> Dict[str, str]:
        """Copy of the options with their original key casing."""
        return dict(self._original)

    def updated(self, key: str, value: str) -> "CaseInsensitiveMap":
        """
        Return a new map with ``key`` set to ``value``.

        Any existing spelling of ``key`` is replaced.
        """
        result = CaseInsensitiveMap(self._original)
        result._put(key, value)
        return result
