"""Option chains from bid/ask quotes, put-call parity, yield curves and CSV tables."""

__version__ = "0.1.0"

__all__ = [
    "apputils",
    "cells",
    "datagrid",
    "instruments",
    "marketenv",
    "optionchain",
    "osi",
    "threadpool",
    "timestamps",
]