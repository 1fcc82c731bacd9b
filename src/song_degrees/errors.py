from __future__ import annotations

from song_degrees.models import Connection


class OracleError(Exception):
    """Base class for failures reported by a similarity oracle."""


class OracleUnavailableError(OracleError):
    """The similarity provider timed out, failed, or sent a malformed payload."""


class InsufficientInputError(ValueError):
    """Raised when an operation is given too few songs to be meaningful."""


class AnalysisCancelledError(Exception):
    def __init__(self, completed: list[Connection], total_pairs: int) -> None:
        super().__init__(f"Analysis cancelled after {len(completed)}/{total_pairs} pairs")
        self.completed = completed
        self.total_pairs = total_pairs
