"""Frame loggers: the boundary between the engine and offline analysis.

The export format is one row per tick with fixed columns, in order:
step, J, KT, KQ, Thrust_N, Torque_Nm, ShaftPower_W, Sigma, CavitationRisk.
A trailing Flags column can be enabled so anomalies stay visible offline.
"""

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TextIO

from hydroprop.core.event_bus import EventBus, EventPriority
from hydroprop.core.logging_system import get_logger
from hydroprop.physics.hydrodynamics import FrameEvent, FrameResult

logger = get_logger(__name__)

EXPORT_COLUMNS = (
    "step",
    "J",
    "KT",
    "KQ",
    "Thrust_N",
    "Torque_Nm",
    "ShaftPower_W",
    "Sigma",
    "CavitationRisk",
)
FLAGS_COLUMN = "Flags"


def frame_to_row(result: FrameResult, include_flags: bool = False) -> list[Any]:
    """Convert a frame into an export row matching EXPORT_COLUMNS."""
    row: list[Any] = [
        result.step,
        result.j,
        result.kt,
        result.kq,
        result.thrust_n,
        result.torque_nm,
        result.shaft_power_w,
        result.sigma,
        int(result.cavitation_risk),
    ]
    if include_flags:
        row.append(result.flags.describe())
    return row


class IFrameLogger(ABC):
    """Receives every frame the engine produces."""

    @abstractmethod
    def log_frame(self, result: FrameResult) -> None:
        """Record one frame."""

    def close(self) -> None:
        """Release resources. Default: nothing to release."""

    def attach(self, event_bus: EventBus, priority: EventPriority = EventPriority.LOW) -> None:
        """Subscribe to FrameEvents on ``event_bus`` instead of direct calls."""
        event_bus.subscribe(FrameEvent, self._on_frame_event, priority)

    def _on_frame_event(self, event: FrameEvent) -> None:
        if event.result is not None:
            self.log_frame(event.result)

    def __enter__(self) -> "IFrameLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class MemoryFrameLogger(IFrameLogger):
    """Keeps frames in memory, optionally only the most recent ones.

    Examples:
        >>> frames = MemoryFrameLogger()
        >>> engine.add_frame_logger(frames)
        >>> frames.results[-1].thrust_n
    """

    def __init__(self, max_frames: int | None = None) -> None:
        self.max_frames = max_frames
        self.results: list[FrameResult] = []

    def log_frame(self, result: FrameResult) -> None:
        self.results.append(result)
        if self.max_frames is not None and len(self.results) > self.max_frames:
            del self.results[0]

    def rows(self, include_flags: bool = False) -> list[list[Any]]:
        return [frame_to_row(r, include_flags) for r in self.results]

    def clear(self) -> None:
        self.results.clear()


class CsvFrameLogger(IFrameLogger):
    """Writes frames to a CSV file with the fixed export columns.

    Args:
        path: Output file; parent directories are created.
        include_flags: Append a Flags column after the fixed columns.
        flush_every: Flush the file every N frames (0 = only on close).
    """

    def __init__(self, path: str | Path, include_flags: bool = False, flush_every: int = 0) -> None:
        self.path = Path(path)
        self.include_flags = include_flags
        self.flush_every = flush_every
        self.frames_written = 0

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file: TextIO | None = self.path.open("w", encoding="utf-8", newline="")
        self._writer = csv.writer(self._file)

        header = list(EXPORT_COLUMNS)
        if include_flags:
            header.append(FLAGS_COLUMN)
        self._writer.writerow(header)
        logger.info("Writing frames to %s", self.path)

    def log_frame(self, result: FrameResult) -> None:
        if self._file is None:
            raise ValueError(f"Frame logger for {self.path} is closed")

        self._writer.writerow(frame_to_row(result, self.include_flags))
        self.frames_written += 1
        if self.flush_every and self.frames_written % self.flush_every == 0:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.info("Closed %s after %d frames", self.path, self.frames_written)
