"""Request headers as a case-insensitive, read-only mapping."""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Wraps the raw ``(name, value)`` byte pairs of an ASGI scope.

    Names are lowercased once up front and values decoded on access.
    Indexing gives the first value sent for a name; ``get_list`` gives
    every one, in arrival order.
    """

    __slots__ = ("_pairs",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._pairs = tuple((name.lower().decode("latin-1"), value) for name, value in raw)

    def get_list(self, key: str) -> list[str]:
        wanted = key.lower()
        return [value.decode("latin-1") for name, value in self._pairs if name == wanted]

    def __getitem__(self, key: str) -> str:
        values = self.get_list(key)
        if not values:
            raise KeyError(key)
        return values[0]

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"
