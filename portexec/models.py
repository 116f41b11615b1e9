from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional


class Protocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"


class ConnectionState(str, Enum):
    LISTENING = "LISTENING"
    ESTABLISHED = "ESTABLISHED"
    TIME_WAIT = "TIME_WAIT"
    CLOSE_WAIT = "CLOSE_WAIT"
    SYN_SENT = "SYN_SENT"
    SYN_RECV = "SYN_RECV"
    FIN_WAIT1 = "FIN_WAIT1"
    FIN_WAIT2 = "FIN_WAIT2"
    LAST_ACK = "LAST_ACK"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"
    IDLE = "IDLE"
    BOUND = "BOUND"


# raw OS status -> canonical state; anything missing passes through verbatim
_STATE_MAP = {s.value: s.value for s in ConnectionState}
_STATE_MAP["LISTEN"] = ConnectionState.LISTENING.value


def normalize_state(raw):
    return _STATE_MAP.get(raw, raw)


class KillOutcome(str, Enum):
    KILLED = "killed"
    ALREADY_EXITED = "already_exited"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    POLICY_REFUSAL = "policy_refusal"
    MISMATCH = "mismatch"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    name: str = "unknown"
    exe_path: str = ""
    parent_pid: int = 0
    create_time: float = 0.0  # epoch seconds, 0 when unknown
    uptime: timedelta = timedelta(0)


@dataclass(frozen=True)
class ConnectionEntry:
    protocol: str
    local_address: str
    port: int
    pid: int
    process_name: str
    parent_pid: int
    uptime: timedelta
    exe_path: str
    state: str
    protected: bool


@dataclass(frozen=True)
class KillResult:
    success: bool
    message: str
    outcome: KillOutcome
    error: Optional[BaseException] = field(default=None, compare=False)


@dataclass
class FilterCriteria:
    """Free-text filter applied client-side over a fetched entry list."""

    port: str = ""
    process_name: str = ""
    pid: str = ""

    @classmethod
    def parse(cls, text):
        """Build criteria from a search box: a valid port number filters by port, anything else by name."""
        text = (text or "").strip()
        if not text:
            return cls()
        if is_valid_port(text):
            return cls(port=text)
        return cls(process_name=text)

    def is_empty(self):
        return not (self.port or self.process_name or self.pid)

    def matches(self, entry):
        if self.port and not _exact_or_substring(self.port, str(entry.port)):
            return False
        if self.process_name and self.process_name.lower() not in entry.process_name.lower():
            return False
        if self.pid and not _exact_or_substring(self.pid, str(entry.pid)):
            return False
        return True


def _exact_or_substring(needle, value):
    return needle == value or needle in value


def apply_filter(entries, criteria):
    if criteria is None or criteria.is_empty():
        return list(entries)
    return [e for e in entries if criteria.matches(e)]


def is_valid_port(text):
    try:
        port = int(str(text).strip())
    except ValueError:
        return False
    return 0 <= port <= 65535


def unique_pids(entries):
    """PIDs in first-seen order."""
    seen = {}
    for e in entries:
        seen.setdefault(e.pid, e)
    return list(seen)
