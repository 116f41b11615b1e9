import time
from datetime import timedelta

from .errors import PortexecError, NoSuchProcess
from .models import ProcessInfo
from .debuglog import debug_log

# fallback for any attribute the OS refuses to report
ATTR_DEFAULTS = {
    "name": "unknown",
    "exe": "",
    "ppid": 0,
    "create_time": 0.0,
}


class Resolver:
    """Turns a PID into a ProcessInfo snapshot. Holds no cache."""

    def __init__(self, backend, clock=time.time):
        self.backend = backend
        self.clock = clock

    def _attr(self, pid, attr):
        getter = getattr(self.backend, f"process_{attr}")
        try:
            val = getter(pid)
        except NoSuchProcess:
            raise
        except PortexecError as e:
            debug_log(f"RESOLVE: PID {pid} {attr} unavailable ({e}), using default")
            return ATTR_DEFAULTS[attr]
        if val is None:
            return ATTR_DEFAULTS[attr]
        return val

    def resolve(self, pid):
        """
        Return a ProcessInfo for pid or raise NoSuchProcess.

        Each attribute is read on its own; an unreadable one falls back to
        its default instead of failing the whole lookup. A process that
        exits between attribute reads is reported as not found.
        """
        try:
            self.backend.check_process(pid)
        except NoSuchProcess:
            raise
        except PortexecError as e:
            # exists but the existence check was refused; per-attribute reads decide
            debug_log(f"RESOLVE: PID {pid} existence check failed ({e})")
        name = self._attr(pid, "name")
        exe = self._attr(pid, "exe")
        ppid = self._attr(pid, "ppid")
        create_time = self._attr(pid, "create_time")
        return ProcessInfo(
            pid=pid,
            name=name,
            exe_path=exe,
            parent_pid=ppid,
            create_time=create_time,
            uptime=self.uptime_since(create_time),
        )

    def uptime_since(self, create_time):
        if not create_time:
            return timedelta(0)
        return timedelta(seconds=max(0.0, self.clock() - create_time))

    def resolve_name(self, pid):
        """Name only, with no fallback: raises when it cannot be read."""
        return self.backend.process_name(pid)

    def resolve_parent(self, pid):
        ppid = self.resolve(pid).parent_pid
        if not ppid:
            raise NoSuchProcess(pid, f"process {pid} has no parent")
        return self.resolve(ppid)

    def is_running(self, pid):
        return self.backend.is_running(pid)

    def list_pids(self):
        return self.backend.pids()
