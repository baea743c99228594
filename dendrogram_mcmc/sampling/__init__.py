"""Chain driver and its logging helpers."""

from .chain import TRACE_COLUMNS, run_chain

__all__ = ["run_chain", "TRACE_COLUMNS"]
