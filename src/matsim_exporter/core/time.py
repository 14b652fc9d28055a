import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def new_run_id() -> str:
    return uuid.uuid4().hex


def format_duration_ms(ms: int) -> str:
    """Return a short human-readable duration string."""
    if ms < 1000:
        return f"{ms} ms"
    return f"{ms / 1000:.2f} s"


def format_hhmmss(seconds: int) -> str:
    """
    Format seconds after midnight as HH:MM:SS.

    Hours are not wrapped, so services running past midnight render as 25:10:00.
    """
    if seconds < 0:
        raise ValueError(f"negative time of day: {seconds}")
    hours, rem = divmod(int(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(slots=True)
class Timer:
    """Wall time of a `with` block in milliseconds; None while the block runs."""

    duration_ms: Optional[int] = field(default=None, init=False)
    _started_ms: int = field(default=0, init=False, repr=False)

    def __enter__(self) -> "Timer":
        self._started_ms = monotonic_ms()
        self.duration_ms = None
        return self

    def __exit__(self, *exc: object) -> None:
        self.duration_ms = monotonic_ms() - self._started_ms
