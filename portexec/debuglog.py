import os
import time

# Debug logging
DEBUG_LOG_PATH = os.path.expanduser("~/.config/portexec/debug.log")
DEBUG_ENABLED = True


def configure_debug_log(path=None, enabled=True):
    """Point the debug log at another file or switch it off."""
    global DEBUG_LOG_PATH, DEBUG_ENABLED
    if path:
        DEBUG_LOG_PATH = os.path.expanduser(path)
    DEBUG_ENABLED = bool(enabled)


def debug_log(msg):
    """Write a timestamped message to the debug log."""
    if not DEBUG_ENABLED:
        return
    try:
        os.makedirs(os.path.dirname(DEBUG_LOG_PATH), exist_ok=True)
        with open(DEBUG_LOG_PATH, "a") as f:
            f.write(f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] {msg}\n")
    except OSError:
        pass
