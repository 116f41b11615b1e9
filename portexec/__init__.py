#!/usr/bin/env python3
import os


def _read_version():
    try:
        with open(os.path.join(os.path.dirname(__file__), "VERSION")) as f:
            return f.read().strip()
    except OSError:
        return "1.0.0"


__version__ = _read_version()

from .backend import SystemBackend, MemoryBackend
from .critical import Protection, classify, is_critical
from .errors import PortexecError, NoSuchProcess, AccessDenied, ScanError
from .killer import Killer
from .models import (
    ConnectionEntry, ConnectionState, FilterCriteria, KillOutcome, KillResult,
    ProcessInfo, Protocol, apply_filter, is_valid_port, unique_pids,
)
from .resolver import Resolver
from .scanner import Scanner
from .cli import cli_entry

__all__ = [
    "SystemBackend", "MemoryBackend",
    "Protection", "classify", "is_critical",
    "PortexecError", "NoSuchProcess", "AccessDenied", "ScanError",
    "Killer", "Resolver", "Scanner",
    "ConnectionEntry", "ConnectionState", "FilterCriteria", "KillOutcome", "KillResult",
    "ProcessInfo", "Protocol", "apply_filter", "is_valid_port", "unique_pids",
    "cli_entry",
]
