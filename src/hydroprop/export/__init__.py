"""Frame loggers handing per-tick results to analysis tooling."""

from hydroprop.export.frame_logger import (
    EXPORT_COLUMNS,
    CsvFrameLogger,
    IFrameLogger,
    MemoryFrameLogger,
    frame_to_row,
)

__all__ = ["EXPORT_COLUMNS", "CsvFrameLogger", "IFrameLogger", "MemoryFrameLogger", "frame_to_row"]
