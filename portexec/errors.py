"""Typed failures raised by the OS backend, the resolver and the scanner."""


class PortexecError(Exception):
    """Base class for every error portexec raises on purpose."""


class NoSuchProcess(PortexecError):
    def __init__(self, pid, msg=None):
        self.pid = pid
        self.msg = msg or f"process {pid} not found"
        super().__init__(self.msg)


class AccessDenied(PortexecError):
    """The OS refused a query or termination for lack of privilege."""

    def __init__(self, pid, msg=None):
        self.pid = pid
        self.msg = msg or "Operation not permitted"
        super().__init__(self.msg)


class ScanError(PortexecError):
    """Connection enumeration failed as a whole."""
