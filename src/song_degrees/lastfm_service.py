from __future__ import annotations

import logging
import os
import time
import uuid
import warnings
from typing import Any

import requests

from song_degrees.errors import OracleUnavailableError
from song_degrees.models import SimilarArtist, Song

logger = logging.getLogger(__name__)

# Last.fm error code for an unknown artist or track.
_NOT_FOUND_ERROR = 6
# Temporary errors (16) and rate limiting (29) are retried like 5xx.
_TRANSIENT_ERRORS = frozenset({16, 29})


def _as_list(value: Any) -> list[dict]:
    """Last.fm sends a bare object instead of a list when there is one result."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return []


def _parse_match(raw: Any) -> float:
    try:
        match = float(raw or 0)
    except (TypeError, ValueError):
        return 0.0
    return min(1.0, max(0.0, match))


def _parse_int(raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class LastFMService:
    BASE_URL = "https://ws.audioscrobbler.com/2.0/"

    # artist.getsimilar returns at most this many entries per call.
    SIMILAR_ARTIST_MAX_LIMIT = 250

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key or os.getenv("LASTFM_API_KEY")
        self._validate_credentials()
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self._similar_cache: dict[tuple[str, int], list[SimilarArtist]] = {}

    def _validate_credentials(self) -> None:
        if not self.api_key:
            raise ValueError(
                "Missing Last.fm credentials: LASTFM_API_KEY. "
                "Set it in environment variables or local .env file."
            )

    def _request(self, method: str, **params: Any) -> dict:
        request_params = {
            "method": method,
            "api_key": self.api_key,
            "format": "json",
            **params,
        }

        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            if attempt:
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Last.fm %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    method, attempt, self.max_retries, delay, last_error,
                )
                time.sleep(delay)
            try:
                response = self.session.get(self.BASE_URL, params=request_params, timeout=self.timeout)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                last_error = exc
                continue
            except requests.exceptions.RequestException as exc:
                raise OracleUnavailableError(f"Last.fm {method} request failed: {exc}") from exc

            if response.status_code >= 500:
                last_error = OracleUnavailableError(f"HTTP {response.status_code}")
                continue

            try:
                payload = response.json()
            except ValueError as exc:
                raise OracleUnavailableError(f"Last.fm {method} returned a non-JSON body") from exc
            if not isinstance(payload, dict):
                raise OracleUnavailableError(f"Last.fm {method} returned an unexpected payload")

            if "error" in payload:
                code = _parse_int(payload["error"])
                if code in _TRANSIENT_ERRORS:
                    last_error = OracleUnavailableError(
                        f"error {code}: {payload.get('message', 'unknown')}"
                    )
                    continue
                if code == _NOT_FOUND_ERROR:
                    logger.debug("Last.fm %s: not found (%s)", method, payload.get("message"))
                    return {}
                raise OracleUnavailableError(
                    f"Last.fm {method} error {payload['error']}: {payload.get('message', 'unknown')}"
                )

            if response.status_code >= 400:
                raise OracleUnavailableError(f"Last.fm {method} returned HTTP {response.status_code}")
            return payload

        raise OracleUnavailableError(
            f"Last.fm {method} failed after {self.max_retries} attempts: {last_error}"
        )

    def get_similar_artists(self, artist_name: str, limit: int = 50) -> list[SimilarArtist]:
        if limit < 1 or limit > self.SIMILAR_ARTIST_MAX_LIMIT:
            clamped = min(self.SIMILAR_ARTIST_MAX_LIMIT, max(1, limit))
            warnings.warn(
                f"Similar-artist limit {limit} is outside 1..{self.SIMILAR_ARTIST_MAX_LIMIT}; "
                f"using {clamped}.",
                RuntimeWarning,
                stacklevel=2,
            )
            limit = clamped

        key = (artist_name.strip().lower(), limit)
        if key in self._similar_cache:
            return list(self._similar_cache[key])

        payload = self._request("artist.getsimilar", artist=artist_name, limit=limit)
        entries = _as_list((payload.get("similarartists") or {}).get("artist"))
        artists = [
            SimilarArtist(name=entry["name"], match=_parse_match(entry.get("match")))
            for entry in entries
            if _is_name(entry.get("name"))
        ]
        self._similar_cache[key] = artists
        return list(artists)

    def get_track_tags(self, artist: str, track: str) -> set[str]:
        payload = self._request("track.getInfo", artist=artist, track=track)
        track_info = payload.get("track") or {}
        tags = _as_list((track_info.get("toptags") or {}).get("tag"))
        return {tag["name"] for tag in tags if _is_name(tag.get("name"))}

    def search_track(self, query: str) -> Song | None:
        payload = self._request("track.search", track=query, limit=1)
        matches = (payload.get("results") or {}).get("trackmatches") or {}
        tracks = _as_list(matches.get("track"))
        if not tracks:
            return None

        track = tracks[0]
        title = track.get("name")
        artist = track.get("artist")
        if not _is_name(title) or not _is_name(artist):
            return None
        return Song(
            id=f"{artist}-{title}-{uuid.uuid4().hex[:8]}",
            title=title,
            artist=artist,
            mbid=track.get("mbid") or None,
            listeners=_parse_int(track.get("listeners")),
        )
