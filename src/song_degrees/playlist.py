"""Playlist ordering strategies over an analysed song set."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Literal, Sequence

from song_degrees.config import STRATEGIES
from song_degrees.errors import InsufficientInputError
from song_degrees.graph import ConnectionGraph
from song_degrees.models import (
    STRONG_CONNECTION_MAX_DEGREES,
    Connection,
    PlaylistStats,
    PlaylistTrack,
    Song,
    TransitionInfo,
)

Strategy = Literal["optimal", "similarity", "random"]


def export_filename(strategy: str) -> str:
    return f"playlist-{strategy}.txt"


def playlist_stats(tracks: Sequence[PlaylistTrack]) -> PlaylistStats:
    transitions = [t.next_connection for t in tracks if t.next_connection is not None]
    count = len(transitions)
    return PlaylistStats(
        avg_degrees=sum(t.degrees for t in transitions) / count if count else 0.0,
        avg_similarity=sum(t.similarity for t in transitions) / count if count else 0.0,
        strong_connections=sum(1 for t in transitions if t.degrees <= STRONG_CONNECTION_MAX_DEGREES),
        total_connections=count,
        total_tracks=len(tracks),
    )


@dataclass(slots=True)
class Playlist:
    strategy: str
    tracks: list[PlaylistTrack] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return export_filename(self.strategy)

    def stats(self) -> PlaylistStats:
        return playlist_stats(self.tracks)

    def to_lines(self) -> list[str]:
        return [f'{t.position}. "{t.song.title}" by {t.song.artist}' for t in self.tracks]

    def to_text(self) -> str:
        return "\n".join(self.to_lines())


def _transition(connection: Connection | None) -> TransitionInfo | None:
    return connection.transition() if connection is not None else None


def _annotate(order: list[Song], graph: ConnectionGraph) -> list[PlaylistTrack]:
    tracks = []
    for index, song in enumerate(order):
        following = order[index + 1] if index + 1 < len(order) else None
        connection = graph.find(song, following) if following is not None else None
        tracks.append(PlaylistTrack(song=song, position=index + 1, next_connection=_transition(connection)))
    return tracks


def _start_song(songs: list[Song], graph: ConnectionGraph) -> Song:
    best = songs[0]
    best_strong = graph.strong_count(best)
    for song in songs[1:]:
        strong = graph.strong_count(song)
        # Strict comparison: earlier songs win ties.
        if strong > best_strong:
            best, best_strong = song, strong
    return best


def _is_better(candidate: Connection | None, best: Connection | None) -> bool:
    if candidate is None:
        return False
    if best is None:
        return True
    if candidate.degrees != best.degrees:
        return candidate.degrees < best.degrees
    return candidate.similarity > best.similarity


def optimal_playlist(songs: Sequence[Song], graph: ConnectionGraph) -> list[PlaylistTrack]:
    """Greedy nearest neighbour: fewest degrees, then highest similarity."""
    remaining = list(songs)
    current = _start_song(remaining, graph)
    remaining.remove(current)
    order = [current]
    transitions: list[TransitionInfo | None] = []

    while remaining:
        # Unconnected songs stay eligible; the first remaining one is the fallback.
        best_next = remaining[0]
        best_connection = graph.find(current, best_next)
        for candidate in remaining:
            connection = graph.find(current, candidate)
            if _is_better(connection, best_connection):
                best_next, best_connection = candidate, connection

        transitions.append(_transition(best_connection))
        order.append(best_next)
        remaining.remove(best_next)
        current = best_next

    transitions.append(None)
    return [
        PlaylistTrack(song=song, position=index + 1, next_connection=transition)
        for index, (song, transition) in enumerate(zip(order, transitions))
    ]


def similarity_playlist(songs: Sequence[Song], graph: ConnectionGraph) -> list[PlaylistTrack]:
    """Seed with the most similar pair, then the rest in input order."""
    ranked = graph.by_similarity()
    by_id = {song.id: song for song in songs}

    order: list[Song] = []
    if ranked:
        seed = ranked[0]
        order = [by_id[seed.song1.id], by_id[seed.song2.id]]
    used = {song.id for song in order}
    order.extend(song for song in songs if song.id not in used)
    return _annotate(order, graph)


def random_playlist(
    songs: Sequence[Song],
    graph: ConnectionGraph,
    rng: random.Random | None = None,
) -> list[PlaylistTrack]:
    order = list(songs)
    (rng or random.Random()).shuffle(order)
    return _annotate(order, graph)


def build_playlist(
    songs: Sequence[Song],
    connections: Iterable[Connection] | ConnectionGraph,
    strategy: Strategy = "optimal",
    rng: random.Random | None = None,
) -> Playlist:
    if not songs:
        raise InsufficientInputError("Cannot build a playlist from an empty song set")
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown playlist strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}")

    ids = [song.id for song in songs]
    if len(set(ids)) != len(ids):
        raise ValueError("Song ids must be unique within a playlist")

    # Edges that touch songs outside this set are stale and ignored.
    known = set(ids)
    graph = ConnectionGraph(c for c in connections if c.song1.id in known and c.song2.id in known)

    if strategy == "optimal":
        tracks = optimal_playlist(songs, graph)
    elif strategy == "similarity":
        tracks = similarity_playlist(songs, graph)
    else:
        tracks = random_playlist(songs, graph, rng=rng)
    return Playlist(strategy=strategy, tracks=tracks)
