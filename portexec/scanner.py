import socket

from .backend import SystemBackend
from .config import get_default_states
from .critical import is_critical
from .debuglog import debug_log
from .errors import PortexecError, NoSuchProcess, ScanError
from .models import ConnectionEntry, Protocol, normalize_state, is_valid_port
from .resolver import Resolver

__all__ = ["Scanner", "is_valid_port", "join_host_port"]

_PROTOCOLS = {
    socket.SOCK_STREAM: Protocol.TCP.value,
    socket.SOCK_DGRAM: Protocol.UDP.value,
}
_INET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def join_host_port(host, port):
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class Scanner:
    """
    Point-in-time connection snapshots joined to process metadata.

    The scanner itself is stateless between calls; the PID cache lives only
    for the duration of one scan() so overlapping scans never share it.
    """

    def __init__(self, backend=None, resolver=None):
        self.backend = backend or SystemBackend()
        self.resolver = resolver or Resolver(self.backend)

    def _lookup(self, pid, cache):
        if pid in cache:
            return cache[pid]
        try:
            info = self.resolver.resolve(pid)
        except NoSuchProcess:
            info = None
        cache[pid] = info
        return info

    def scan(self, states=None):
        """
        Return every TCP/UDP connection with a resolvable owner.

        states: optional collection of canonical state names; when
        non-empty only entries whose state is in it are kept.
        """
        try:
            conns = self.backend.connections()
        except PortexecError as e:
            debug_log(f"SCAN: Enumeration failed: {e}")
            raise ScanError(f"failed to get network connections: {e}") from e

        wanted = set(states) if states else None
        cache = {}  # pid -> ProcessInfo | None, scoped to this call
        entries = []
        skipped = 0

        for conn in conns:
            if not conn.pid:
                continue
            if conn.family not in _INET_FAMILIES:
                continue
            protocol = _PROTOCOLS.get(conn.type)
            if protocol is None:
                continue

            state = normalize_state(conn.status)
            if wanted is not None and state not in wanted:
                continue

            info = self._lookup(conn.pid, cache)
            if info is None:
                skipped += 1
                continue

            host = conn.ip or "0.0.0.0"
            entries.append(ConnectionEntry(
                protocol=protocol,
                local_address=join_host_port(host, conn.port),
                port=conn.port,
                pid=conn.pid,
                process_name=info.name,
                parent_pid=info.parent_pid,
                uptime=info.uptime,
                exe_path=info.exe_path,
                state=state,
                protected=is_critical(info.name),
            ))

        if skipped:
            debug_log(f"SCAN: Dropped {skipped} connection(s) whose process vanished")
        return entries

    def scan_default(self):
        """Scan filtered by the configured default states (listening + established)."""
        return self.scan(get_default_states())

    def by_port(self, port):
        return [e for e in self.scan() if e.port == port]

    def by_process(self, pid):
        return [e for e in self.scan() if e.pid == pid]

    def find_entry(self, pid, port):
        for e in self.scan():
            if e.pid == pid and e.port == port:
                return e
        return None
