"""
Critical-process policy.

A single immutable table decides whether a process name is protected from
the ordinary kill path. Both the listing (``ConnectionEntry.protected``)
and the termination guard consult it independently, by name, at the
moment they need an answer.
"""
from enum import Enum
from types import MappingProxyType


class Protection(Enum):
    CRITICAL = "critical"
    EXPLICITLY_ALLOWED = "explicitly_allowed"
    UNLISTED = "unlisted"


_C = Protection.CRITICAL
_A = Protection.EXPLICITLY_ALLOWED

# Exact, case-sensitive names. Entries may be stored with or without ".exe".
CRITICAL_PROCESSES = MappingProxyType({
    # Windows kernel / session / security
    "System": _C,
    "Registry": _C,
    "smss": _C,
    "csrss": _C,
    "wininit": _C,
    "winlogon": _C,
    "services": _C,
    "lsass": _C,
    "svchost": _C,
    "dwm": _C,
    # Unix init and kernel threads
    "init": _C,
    "systemd": _C,
    "kthreadd": _C,
    "launchd": _C,
    "kernel_task": _C,
    # well-known shell; killing it is disruptive but recoverable
    "explorer": _A,
})

SERVICE_HOST_PREFIX = "svchost"
EXE_SUFFIX = ".exe"


def _name_variants(name):
    yield name
    yield name + EXE_SUFFIX
    if name.lower().endswith(EXE_SUFFIX) and len(name) > len(EXE_SUFFIX):
        yield name[:-len(EXE_SUFFIX)]


def classify(name):
    """Return the Protection verdict for a process name."""
    if not name:
        return Protection.UNLISTED
    for candidate in _name_variants(name):
        verdict = CRITICAL_PROCESSES.get(candidate)
        if verdict is not None:
            return verdict
    if name.lower().startswith(SERVICE_HOST_PREFIX):
        return Protection.CRITICAL
    return Protection.UNLISTED


def is_critical(name):
    return classify(name) is Protection.CRITICAL
