"""
OS capability layer.

Everything portexec asks of the operating system goes through one of
these backends.
``SystemBackend`` talks to the live host through psutil;
``MemoryBackend`` is a scriptable in-memory host for tests and headless
consumers.
"""
import os
import errno
import socket
import threading
from collections import namedtuple
from contextlib import contextmanager

import psutil

from .errors import PortexecError, NoSuchProcess, AccessDenied

RawConnection = namedtuple("RawConnection", "pid family type ip port status")


# --------------------------------------------------
# psutil-backed host
# --------------------------------------------------
@contextmanager
def _translate_errors(pid):
    """Re-raise psutil / OS errors as portexec errors."""
    try:
        yield
    except psutil.ZombieProcess as e:
        # still in the process table; only its attributes are gone
        raise PortexecError(f"process {pid} is a zombie") from e
    except psutil.NoSuchProcess as e:
        raise NoSuchProcess(pid, e.msg or None) from e
    except psutil.AccessDenied as e:
        raise AccessDenied(pid, os.strerror(errno.EPERM)) from e
    except ProcessLookupError as e:
        raise NoSuchProcess(pid, e.strerror) from e
    except PermissionError as e:
        raise AccessDenied(pid, e.strerror or str(e)) from e
    except (psutil.Error, OSError) as e:
        raise PortexecError(str(e) or e.__class__.__name__) from e


class SystemBackend:

    def __init__(self, kind="inet"):
        # "inet" = tcp4/tcp6/udp4/udp6; unix sockets have no port to report
        self.kind = kind

    def connections(self):
        with _translate_errors(0):
            conns = psutil.net_connections(kind=self.kind)
        rows = []
        for c in conns:
            ip, port = (c.laddr.ip, c.laddr.port) if c.laddr else ("", 0)
            rows.append(RawConnection(c.pid or 0, c.family, c.type, ip, port, c.status))
        return rows

    def check_process(self, pid):
        with _translate_errors(pid):
            psutil.Process(pid)

    def _query(self, pid, attr):
        with _translate_errors(pid):
            return getattr(psutil.Process(pid), attr)()

    def process_name(self, pid):
        return self._query(pid, "name")

    def process_exe(self, pid):
        return self._query(pid, "exe")

    def process_ppid(self, pid):
        return self._query(pid, "ppid")

    def process_create_time(self, pid):
        return self._query(pid, "create_time")

    def terminate(self, pid):
        """Graceful stop: SIGTERM on POSIX, TerminateProcess on Windows."""
        with _translate_errors(pid):
            psutil.Process(pid).terminate()

    def kill(self, pid):
        """Forced stop: SIGKILL on POSIX."""
        with _translate_errors(pid):
            psutil.Process(pid).kill()

    def is_running(self, pid):
        try:
            return psutil.Process(pid).is_running()
        except psutil.Error:
            return False

    def pids(self):
        with _translate_errors(0):
            return psutil.pids()

    def is_elevated(self):
        if hasattr(os, "geteuid"):
            return os.geteuid() == 0
        try:
            import ctypes
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False


# --------------------------------------------------
# In-memory host
# --------------------------------------------------
class MemoryProcess:
    def __init__(self, pid, name="unknown", exe="", ppid=0, create_time=0.0,
                 errors=None, terminate_error=None, kill_error=None, check_error=None):
        self.pid = pid
        self.name = name
        self.exe = exe
        self.ppid = ppid
        self.create_time = create_time
        # attr name -> exception raised when that attribute is queried
        self.errors = dict(errors or {})
        self.terminate_error = terminate_error
        self.kill_error = kill_error
        # raised by check_process while the process still exists
        self.check_error = check_error


class MemoryBackend:
    """Scriptable host. Records every termination primitive invoked."""

    def __init__(self, elevated=False, connections_error=None):
        self.processes = {}
        self.raw_connections = []
        self.elevated = elevated
        self.connections_error = connections_error
        self.calls = []
        self.enumerations = 0
        self._lock = threading.Lock()

    def add_process(self, pid, name="unknown", **kwargs):
        proc = MemoryProcess(pid, name, **kwargs)
        self.processes[pid] = proc
        return proc

    def add_connection(self, pid, port, protocol="TCP", ip="0.0.0.0", status="LISTEN",
                       family=socket.AF_INET, sock_type=None):
        if sock_type is None:
            sock_type = socket.SOCK_DGRAM if protocol == "UDP" else socket.SOCK_STREAM
        conn = RawConnection(pid, family, sock_type, ip, port, status)
        self.raw_connections.append(conn)
        return conn

    def connections(self):
        with self._lock:
            self.enumerations += 1
        if self.connections_error is not None:
            raise self.connections_error
        return list(self.raw_connections)

    def _get(self, pid):
        proc = self.processes.get(pid)
        if proc is None:
            raise NoSuchProcess(pid)
        return proc

    def check_process(self, pid):
        proc = self._get(pid)
        if proc.check_error is not None:
            raise proc.check_error

    def _query(self, pid, attr):
        proc = self._get(pid)
        if attr in proc.errors:
            raise proc.errors[attr]
        return getattr(proc, attr)

    def process_name(self, pid):
        return self._query(pid, "name")

    def process_exe(self, pid):
        return self._query(pid, "exe")

    def process_ppid(self, pid):
        return self._query(pid, "ppid")

    def process_create_time(self, pid):
        return self._query(pid, "create_time")

    def _stop(self, pid, primitive):
        with self._lock:
            self.calls.append((primitive, pid))
        proc = self._get(pid)
        err = proc.terminate_error if primitive == "terminate" else proc.kill_error
        if err is not None:
            raise err
        self.processes.pop(pid, None)

    def terminate(self, pid):
        self._stop(pid, "terminate")

    def kill(self, pid):
        self._stop(pid, "kill")

    def is_running(self, pid):
        return pid in self.processes

    def pids(self):
        return sorted(self.processes)

    def is_elevated(self):
        return self.elevated

    def termination_calls(self, pid=None):
        return [c for c in self.calls if pid is None or c[1] == pid]
