from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

from song_degrees.analysis import analyze_songs
from song_degrees.config import STRATEGIES, Settings, load_local_env_file
from song_degrees.errors import InsufficientInputError, OracleError
from song_degrees.models import AnalysisResult, Song
from song_degrees.playlist import Playlist, build_playlist
from song_degrees.separation import ConnectionResolver


def parse_args(argv: list[str] | None = None, settings: Settings | None = None) -> argparse.Namespace:
    settings = settings or Settings.from_env()
    parser = argparse.ArgumentParser(description="Song degrees of separation and playlist builder")
    parser.add_argument(
        "--song",
        dest="songs",
        action="append",
        required=True,
        help="Song title to search on Last.fm (repeat for each song, at least 2)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=settings.playlist_strategy,
        help="Playlist ordering (defaults to PLAYLIST_STRATEGY env or optimal)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the random strategy")
    parser.add_argument(
        "--export",
        metavar="DIR",
        default=None,
        help="Write playlist-<strategy>.txt into this directory",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def resolve_songs(queries: list[str], service: object) -> list[Song]:
    songs: list[Song] = []
    for query in queries:
        song = service.search_track(query)
        if song is None:
            raise ValueError(f'No results found for "{query}". Try a more specific title.')
        print(f"Resolved: {song.title} - {song.artist}")
        songs.append(song)
    return songs


def print_progress(done: int, total: int) -> None:
    print(f"Analyzed {done}/{total} pairs ({done / total:.0%})")


def format_connection(connection) -> str:
    degree_word = "degree" if connection.degrees == 1 else "degrees"
    return (
        f'"{connection.song1.title}" <-> "{connection.song2.title}": '
        f"{connection.degrees} {degree_word}, {connection.similarity:.0%} similar "
        f"[{' -> '.join(connection.path)}]"
    )


def write_playlist(playlist: Playlist, directory: str | Path) -> Path:
    path = Path(directory) / playlist.filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(playlist.to_text() + "\n", encoding="utf-8")
    return path


def report(result: AnalysisResult, playlist: Playlist) -> None:
    print(f"Lowest degrees: {result.lowest_degrees}")
    print(f"Connections analyzed: {result.total_analyzed}")
    print("Strongest connections")
    for connection in result.connections[:5]:
        print(f"  {format_connection(connection)}")

    print(f"Playlist ({playlist.strategy})")
    for line, track in zip(playlist.to_lines(), playlist.tracks):
        suffix = ""
        if track.next_connection:
            suffix = f"  -> {track.next_connection.degrees}°, {track.next_connection.similarity:.0%}"
        print(f"  {line}{suffix}")

    stats = playlist.stats()
    print(
        f"Avg degrees: {stats.avg_degrees:.1f}  Avg similarity: {stats.avg_similarity:.0%}  "
        f"Strong links: {stats.strong_connections}  Total tracks: {stats.total_tracks}"
    )


def main(argv: list[str] | None = None) -> int:
    load_local_env_file()
    settings = Settings.from_env()
    args = parse_args(argv, settings)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    from song_degrees.lastfm_service import LastFMService

    try:
        service = LastFMService(
            api_key=settings.lastfm_api_key,
            timeout=settings.lastfm_timeout,
            max_retries=settings.lastfm_max_retries,
        )
        songs = resolve_songs(args.songs, service)
        resolver = ConnectionResolver(service, similar_limit=settings.similar_artist_limit)
        result = analyze_songs(songs, resolver, progress=print_progress)
    except InsufficientInputError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (ValueError, OracleError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    playlist = build_playlist(songs, result.connections, strategy=args.strategy, rng=rng)
    report(result, playlist)

    if args.export:
        path = write_playlist(playlist, args.export)
        print(f"Saved {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
