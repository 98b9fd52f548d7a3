from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

_SPAN_LIMIT = 256
_SPAN_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=_SPAN_LIMIT)


@dataclass
class Span:
    name: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = None

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end_time = time.monotonic()
        if exc_type is not None:
            self.attrs["error"] = exc_type.__name__
        record_span(self)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000


def span(name: str, **attrs: Any) -> Span:
    """Time a block; the finished span lands in the recent-spans buffer."""
    return Span(name=name, attrs=attrs)


def record_span(span_obj: Span) -> None:
    _SPAN_BUFFER.append(
        {
            "name": span_obj.name,
            "attrs": dict(span_obj.attrs or {}),
            "duration_ms": round(span_obj.duration_ms, 3),
        }
    )


def get_recent_spans() -> List[Dict[str, Any]]:
    return list(_SPAN_BUFFER)


def clear_spans() -> None:
    _SPAN_BUFFER.clear()


def format_spans(spans: List[Dict[str, Any]]) -> str:
    if not spans:
        return "(no spans recorded)"
    width = max(len(entry["name"]) for entry in spans)
    return "\n".join(
        f"{entry['name'].ljust(width)}  {entry['duration_ms']:.1f} ms" for entry in spans
    )
