from __future__ import annotations

from typing import Iterable, Iterator

from song_degrees.models import Connection, Song


def _pair_key(first_id: str, second_id: str) -> frozenset[str]:
    return frozenset((first_id, second_id))


class ConnectionGraph:
    """Complete, edge-labelled graph over an analysed song set.

    Lookups are symmetric: ``find(a, b)`` and ``find(b, a)`` return the same
    connection. Iteration keeps the order the connections were supplied in.
    """

    def __init__(self, connections: Iterable[Connection] = ()) -> None:
        self._connections: list[Connection] = []
        self._index: dict[frozenset[str], Connection] = {}
        for connection in connections:
            self.add(connection)

    def add(self, connection: Connection) -> None:
        if connection.song1.id == connection.song2.id:
            raise ValueError(f"Connection links song {connection.song1.id!r} to itself")
        key = _pair_key(connection.song1.id, connection.song2.id)
        if key in self._index:
            raise ValueError(
                f"Duplicate connection between {connection.song1.id!r} and {connection.song2.id!r}"
            )
        self._index[key] = connection
        self._connections.append(connection)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def find(self, first: Song, second: Song) -> Connection | None:
        return self._index.get(_pair_key(first.id, second.id))

    def for_song(self, song: Song) -> list[Connection]:
        return [connection for connection in self._connections if connection.involves(song)]

    def strong_count(self, song: Song) -> int:
        return sum(1 for connection in self.for_song(song) if connection.is_strong)

    def by_similarity(self) -> list[Connection]:
        return sorted(self._connections, key=lambda c: c.similarity, reverse=True)

    def ranked(self) -> list[Connection]:
        """Lowest degrees first, then highest similarity."""
        return sorted(self._connections, key=lambda c: (c.degrees, -c.similarity))

    def lowest_degrees(self) -> int | None:
        if not self._connections:
            return None
        return min(connection.degrees for connection in self._connections)

    def without_song(self, song_id: str) -> ConnectionGraph:
        return ConnectionGraph(
            c for c in self._connections if song_id not in (c.song1.id, c.song2.id)
        )
