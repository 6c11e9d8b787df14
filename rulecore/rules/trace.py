"""Append-only trace recorder shared by the evaluator and the simulation engine."""

from __future__ import annotations

import time
from typing import Any

from .models import TraceEntry, TraceType


class TraceRecorder:
    """Collects trace entries for a single evaluation run.

    Entries are immutable once appended and ids (``trace-1``, ``trace-2``, ...)
    follow creation order. Timestamps never go backwards even if the wall
    clock does.
    """

    def __init__(self) -> None:
        self._entries: list[TraceEntry] = []
        self._last_timestamp = 0.0

    def add(
        self,
        type: TraceType,
        name: str,
        input: dict[str, Any],
        output: Any,
        duration: float,
        passed: bool | None = None,
        message: str | None = None,
    ) -> TraceEntry:
        timestamp = max(time.time() * 1000, self._last_timestamp)
        self._last_timestamp = timestamp
        entry = TraceEntry(
            id=f"trace-{len(self._entries) + 1}",
            timestamp=timestamp,
            type=TraceType(type),
            name=name,
            input=dict(input),
            output=output,
            duration=duration,
            passed=passed,
            message=message,
        )
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> list[TraceEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []
        self._last_timestamp = 0.0

    def __len__(self) -> int:
        return len(self._entries)


def elapsed_ms(start: float) -> float:
    """Milliseconds since ``start``, a ``time.perf_counter()`` reading."""
    return (time.perf_counter() - start) * 1000
