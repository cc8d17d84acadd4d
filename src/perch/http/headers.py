"""Case-insensitive, read-only request headers."""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers keyed by lower-cased name.

    A repeated header keeps every value: indexing returns the first,
    ``get_all`` returns them all in arrival order.
    """

    __slots__ = ("_values",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        collected: dict[str, list[str]] = {}
        for name, value in pairs:
            collected.setdefault(name.lower(), []).append(value)
        self._values: dict[str, tuple[str, ...]] = {
            name: tuple(values) for name, values in collected.items()
        }

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> "Headers":
        """Decode the byte pairs of an ASGI scope. ASGI header bytes are latin-1."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    def __getitem__(self, name: str) -> str:
        return self._values[name.lower()][0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_all(self, name: str) -> tuple[str, ...]:
        """Every value sent for *name*, or an empty tuple."""
        return self._values.get(name.lower(), ())
