import os
import copy
import threading

import yaml

from .debuglog import debug_log, configure_debug_log

CONFIG_DIR = os.path.expanduser("~/.config/portexec")
CONFIG_FILE = "config.yaml"

DEFAULT_CONFIG = {
    "default_states": ["LISTENING", "ESTABLISHED"],
    "show_path": False,
    "debug": True,
    "log_path": os.path.join(CONFIG_DIR, "debug.log"),
}

CONFIG = copy.deepcopy(DEFAULT_CONFIG)
CONFIG_LOCK = threading.Lock()


def config_path(config_dir=None):
    return os.path.join(config_dir or CONFIG_DIR, CONFIG_FILE)


def _merge(saved):
    """Overlay a loaded mapping on the defaults, rejecting wrongly typed values."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, val in saved.items():
        if key == "default_states":
            if not isinstance(val, list) or not all(isinstance(s, str) for s in val):
                debug_log(f"CONFIG: Ignoring malformed default_states: {val!r}")
                continue
        elif key in ("show_path", "debug") and not isinstance(val, bool):
            debug_log(f"CONFIG: Ignoring non-boolean {key}: {val!r}")
            continue
        elif key == "log_path" and not isinstance(val, str):
            debug_log(f"CONFIG: Ignoring non-string log_path: {val!r}")
            continue
        merged[key] = val
    return merged


def init_config(config_dir=None):
    """Load the saved config over the defaults, creating the file on first run."""
    global CONFIG
    config_dir = config_dir or CONFIG_DIR
    path = config_path(config_dir)
    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        debug_log(f"CONFIG: Cannot create {config_dir}: {e}")

    loaded = copy.deepcopy(DEFAULT_CONFIG)
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                saved = yaml.safe_load(f) or {}
            if isinstance(saved, dict):
                loaded = _merge(saved)
            else:
                debug_log(f"CONFIG: {path} is not a mapping, using defaults")
        except (OSError, yaml.YAMLError) as e:
            debug_log(f"CONFIG: Error loading: {e}")
    with CONFIG_LOCK:
        CONFIG = loaded
    if not os.path.exists(path):
        save_config(config_dir)

    configure_debug_log(CONFIG.get("log_path"), CONFIG.get("debug", True))
    return CONFIG


def save_config(config_dir=None):
    path = config_path(config_dir)
    try:
        with CONFIG_LOCK:
            snapshot = copy.deepcopy(CONFIG)
        with open(path, "w") as f:
            yaml.safe_dump(snapshot, f, default_flow_style=False)
    except (OSError, yaml.YAMLError) as e:
        debug_log(f"CONFIG: Error saving: {e}")


def get_default_states():
    with CONFIG_LOCK:
        return list(CONFIG.get("default_states") or [])
