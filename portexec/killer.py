"""
Termination guard.

kill() resolves the target's name, refuses protected processes, then runs
two stages: a graceful terminate, and only if that fails a forced kill.
Every path ends in a KillResult; nothing here raises for runtime
conditions.
"""
from collections import namedtuple
from numbers import Integral

from .backend import SystemBackend
from .critical import is_critical
from .debuglog import debug_log
from .errors import PortexecError, NoSuchProcess, AccessDenied
from .models import KillResult, KillOutcome
from .resolver import Resolver

PERMISSION_PHRASES = ("access is denied", "operation not permitted")

GRACEFUL = "terminate"
FORCED = "kill"

StageOutcome = namedtuple("StageOutcome", "stage ok gone error")


def _check_pid(pid):
    if isinstance(pid, bool) or not isinstance(pid, Integral):
        raise TypeError(f"pid must be an int, not {type(pid).__name__}")
    if pid < 0:
        raise ValueError(f"pid must not be negative: {pid}")
    return int(pid)


def is_permission_error(err):
    if isinstance(err, AccessDenied):
        return True
    text = str(err).lower()
    return any(p in text for p in PERMISSION_PHRASES)


def _lookup_failure(prefix, err, pid):
    """Result for a name lookup that failed for any reason but the process being gone."""
    if is_permission_error(err):
        return KillResult(False, f"{prefix}: {err}. Run as Administrator/root to inspect process {pid}",
                          KillOutcome.PERMISSION_DENIED, err)
    return KillResult(False, f"{prefix}: {err}", KillOutcome.FAILED, err)


class Killer:

    def __init__(self, backend=None, resolver=None):
        self.backend = backend or SystemBackend()
        self.resolver = resolver or Resolver(self.backend)

    # --------------------------------------------------
    # Stages
    # --------------------------------------------------
    def run_stage(self, stage, pid):
        primitive = getattr(self.backend, stage)
        try:
            primitive(pid)
        except NoSuchProcess as e:
            debug_log(f"KILL: {stage} PID {pid} -> already gone")
            return StageOutcome(stage, False, True, e)
        except PortexecError as e:
            debug_log(f"KILL: {stage} PID {pid} -> failed: {e}")
            return StageOutcome(stage, False, False, e)
        debug_log(f"KILL: {stage} PID {pid} -> ok")
        return StageOutcome(stage, True, False, None)

    def escalate(self, pid):
        """Graceful stage, then the forced stage only when the first failed."""
        first = self.run_stage(GRACEFUL, pid)
        if first.ok or first.gone:
            return first
        return self.run_stage(FORCED, pid)

    # --------------------------------------------------
    # Entry points
    # --------------------------------------------------
    def kill(self, pid):
        pid = _check_pid(pid)
        debug_log(f"KILL: Request for PID {pid}")
        try:
            name = self.resolver.resolve_name(pid)
        except NoSuchProcess as e:
            return KillResult(False, f"Process {pid} not found (may have already terminated)",
                              KillOutcome.NOT_FOUND, e)
        except PortexecError as e:
            return _lookup_failure("Failed to get process name", e, pid)

        if is_critical(name):
            debug_log(f"KILL: Refused critical process {name} ({pid})")
            return KillResult(False, f"Refusing to kill critical system process: {name}",
                              KillOutcome.POLICY_REFUSAL)

        final = self.escalate(pid)
        if final.ok:
            return KillResult(True, f"Successfully killed process {pid} ({name})", KillOutcome.KILLED)
        if final.gone:
            return KillResult(True, f"Process {pid} ({name}) had already exited",
                              KillOutcome.ALREADY_EXITED, final.error)
        return self._failure(final.error, pid, name)

    def kill_with_verification(self, pid, expected_name):
        """Kill only if pid still belongs to expected_name."""
        pid = _check_pid(pid)
        try:
            name = self.resolver.resolve_name(pid)
        except NoSuchProcess as e:
            return KillResult(False, f"Failed to verify process: {e}", KillOutcome.NOT_FOUND, e)
        except PortexecError as e:
            return _lookup_failure("Failed to verify process", e, pid)
        if name != expected_name:
            debug_log(f"KILL: PID {pid} mismatch, expected {expected_name}, got {name}")
            return KillResult(False, f"Process name mismatch: expected {expected_name}, got {name}",
                              KillOutcome.MISMATCH)
        return self.kill(pid)

    def force_kill(self, pid):
        """
        DANGEROUS: forced stop with no name lookup and no critical-process
        check. Exists for operators who must override the policy; callers
        are expected to obtain their own explicit confirmation first.
        """
        pid = _check_pid(pid)
        debug_log(f"F-KILL: Bypassing critical-process policy for PID {pid}")
        stage = self.run_stage(FORCED, pid)
        if stage.ok:
            return KillResult(True, f"Force killed process {pid}", KillOutcome.KILLED)
        if stage.gone:
            return KillResult(False, f"Process {pid} not found", KillOutcome.NOT_FOUND, stage.error)
        if is_permission_error(stage.error):
            return KillResult(False, f"Failed to kill process: {stage.error}. Run as Administrator/root",
                              KillOutcome.PERMISSION_DENIED, stage.error)
        return KillResult(False, f"Failed to kill process: {stage.error}", KillOutcome.FAILED, stage.error)

    def check_access(self, pid):
        """
        Cheap pre-flight check for UI hints. Reads the name only; the kill
        path re-checks everything on its own.
        """
        pid = _check_pid(pid)
        try:
            self.backend.process_name(pid)
        except NoSuchProcess:
            return False, "Process not found"
        except PortexecError as e:
            if is_permission_error(e) or "access" in str(e).lower():
                return False, "Access denied - requires administrator privileges"
            return False, str(e)
        return True, "OK"

    def is_elevated(self):
        try:
            return bool(self.backend.is_elevated())
        except PortexecError as e:
            debug_log(f"KILL: privilege check failed: {e}")
            return False

    def _failure(self, err, pid, name):
        if is_permission_error(err):
            debug_log(f"KILL: Permission denied for PID {pid} ({name}): {err}")
            return KillResult(False,
                              f"Access denied. Run as Administrator/root to kill process {pid} ({name})",
                              KillOutcome.PERMISSION_DENIED, err)
        return KillResult(False, f"Failed to kill process {pid} ({name}): {err}",
                          KillOutcome.FAILED, err)
