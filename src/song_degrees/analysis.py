from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

from song_degrees.errors import AnalysisCancelledError, InsufficientInputError
from song_degrees.graph import ConnectionGraph
from song_degrees.models import AnalysisResult, Connection, Song
from song_degrees.separation import ConnectionResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def total_pairs(song_count: int) -> int:
    return song_count * (song_count - 1) // 2


def analyze_songs(
    songs: Sequence[Song],
    resolver: ConnectionResolver,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> AnalysisResult:
    """Resolve every unordered pair of ``songs``, one pair at a time.

    ``progress(done, total)`` is called after each pair. ``cancel_event`` is
    checked between pairs; once set, ``AnalysisCancelledError`` is raised with
    the connections completed so far.
    """
    if len(songs) < 2:
        raise InsufficientInputError("Please add at least 2 songs to analyze")

    ids = [song.id for song in songs]
    if len(set(ids)) != len(ids):
        raise ValueError("Song ids must be unique within an analysis")

    total = total_pairs(len(songs))
    connections: list[Connection] = []
    logger.info("Analyzing %d songs (%d pairs)", len(songs), total)

    for i in range(len(songs)):
        for j in range(i + 1, len(songs)):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Analysis cancelled after %d/%d pairs", len(connections), total)
                raise AnalysisCancelledError(connections, total)

            connection = resolver.resolve_connection(songs[i], songs[j])
            connections.append(connection)
            logger.debug(
                "%s <-> %s: %d degrees, similarity %.2f",
                songs[i].title, songs[j].title, connection.degrees, connection.similarity,
            )
            if progress is not None:
                progress(len(connections), total)

    graph = ConnectionGraph(connections)
    return AnalysisResult(
        connections=graph.ranked(),
        lowest_degrees=graph.lowest_degrees(),
        total_analyzed=len(graph),
    )
