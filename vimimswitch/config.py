"""Configuration loader and validator for vimimswitch.

Provides ``load_config(path)`` which reads a JSON config (with
comment and trailing-comma tolerant sanitizer) and merges user
overrides from ``~/.config/vimimswitch/config.json``.

Also provides ``validate_config(conf)`` which normalizes and
validates config keys, raising ``ValueError`` on invalid values.

``ConfigManager`` keeps the effective settings as an immutable
``IMSwitchSettings`` snapshot.  Every change replaces the snapshot as a
whole, so a reader holding a snapshot never sees a half-applied edit.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import asdict, dataclass, replace

logger = logging.getLogger(__name__)

IM_PLACEHOLDER = '{im}'

DEFAULT_CONFIG_PATH = os.path.expanduser('~/.config/vimimswitch/config.json')

# Single source of truth for default configuration
DEFAULT_CONFIG: dict = {
    'enable': False,
    'default_im': '',
    'obtain_im_cmd': '/path/to/IMCmd',
    'switch_im_cmd': '/path/to/IMCmd ' + IM_PLACEHOLDER,
    'command_timeout': 5.0,
    'debug': False,
}


@dataclass(frozen=True)
class IMSwitchSettings:
    """Read-only view of the effective configuration."""

    enable: bool = DEFAULT_CONFIG['enable']
    default_im: str = DEFAULT_CONFIG['default_im']
    obtain_im_cmd: str = DEFAULT_CONFIG['obtain_im_cmd']
    switch_im_cmd: str = DEFAULT_CONFIG['switch_im_cmd']
    command_timeout: float = DEFAULT_CONFIG['command_timeout']
    debug: bool = DEFAULT_CONFIG['debug']

    @classmethod
    def from_dict(cls, conf: dict | None) -> "IMSwitchSettings":
        return cls(**validate_config(conf))

    def to_dict(self) -> dict:
        return asdict(self)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _sanitize_json_text(s: str) -> str:
    """Remove ``#``/``//`` comments and trailing commas from JSON-like text."""
    # Hash-style line comments
    s = re.sub(r"^[ \t]*#.*$", "", s, flags=re.MULTILINE)
    # C++-style comments on their own line or after a value.  A ``//`` inside
    # a string (``/usr//bin``) is kept because it is preceded by a non-space.
    s = re.sub(r"(^|[ \t,\[{])//.*$", r"\1", s, flags=re.MULTILINE)
    # Trailing commas before } or ]
    s = re.sub(r",[ \t\r\n]+(\}|\])", r"\1", s)
    return s


def _check_bool(conf: dict, key: str) -> bool:
    value = conf.get(key, DEFAULT_CONFIG[key])
    if not isinstance(value, bool):
        raise ValueError(f"Invalid '{key}': must be boolean")
    return value


def _check_str(conf: dict, key: str) -> str:
    value = conf.get(key, DEFAULT_CONFIG[key])
    if not isinstance(value, str):
        raise ValueError(f"Invalid '{key}': must be a string")
    return value


def save_json(path: str, data: dict) -> None:
    """Atomically write *data* to *path* via a temp file in the same directory."""
    dir_path = os.path.dirname(os.path.abspath(path))
    os.makedirs(dir_path, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dir_path, suffix=".json.tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------

def validate_config(conf: dict | None) -> dict:
    """Validate and normalize configuration dictionary.

    Returns a normalized dict with all expected keys.
    Raises ``ValueError`` on invalid values.
    """
    if conf is None:
        conf = {}

    out = dict(DEFAULT_CONFIG)

    out['enable'] = _check_bool(conf, 'enable')
    out['debug'] = _check_bool(conf, 'debug')

    # default_im may be empty: entering normal mode then only records the IM
    out['default_im'] = _check_str(conf, 'default_im').strip()

    obtain = _check_str(conf, 'obtain_im_cmd')
    if not obtain.strip():
        raise ValueError("Invalid 'obtain_im_cmd': must be a non-empty string")
    out['obtain_im_cmd'] = obtain

    switch = _check_str(conf, 'switch_im_cmd')
    if not switch.strip():
        raise ValueError("Invalid 'switch_im_cmd': must be a non-empty string")
    out['switch_im_cmd'] = switch

    # command_timeout — positive float, at most a minute
    raw_timeout = conf.get('command_timeout', DEFAULT_CONFIG['command_timeout'])
    if isinstance(raw_timeout, bool):
        raise ValueError(f"Invalid 'command_timeout': {raw_timeout}")
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid 'command_timeout': {raw_timeout}")
    if not (0 < timeout <= 60.0):
        raise ValueError(f"Invalid 'command_timeout': {raw_timeout} (must be in (0, 60])")
    out['command_timeout'] = timeout

    return out


def _read_and_merge(path: str, target_config: dict) -> bool:
    """Read a JSON file, validate, and merge into *target_config*.

    Returns True on success, False on any error.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = f.read()
    except OSError as exc:
        logger.warning("Cannot read config %s: %s", path, exc)
        return False

    try:
        cfg = json.loads(raw)
    except json.JSONDecodeError:
        try:
            cfg = json.loads(_sanitize_json_text(raw))
        except json.JSONDecodeError as exc:
            logger.warning("JSON parse error in %s: %s", path, exc)
            return False

    if not isinstance(cfg, dict):
        logger.warning("Invalid config %s: top level must be an object", path)
        return False

    try:
        validated = validate_config(cfg)
    except ValueError as verr:
        logger.warning("Invalid config %s: %s", path, verr)
        return False

    # Only override keys explicitly present in source
    for k in cfg:
        if k in validated:
            target_config[k] = validated[k]
    return True


# ------------------------------------------------------------------
# Top-level loader
# ------------------------------------------------------------------

def _load_checked(config_path: str | None = None) -> tuple[dict, bool]:
    """Like ``load_config`` but also report whether the file was accepted.

    A missing file counts as accepted (defaults apply).
    """
    config = dict(DEFAULT_CONFIG)
    path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return config, True
    return config, _read_and_merge(path, config)


def load_config(config_path: str | None = None) -> dict:
    """Load and merge configuration.

    If *config_path* is given, uses only that file (returns defaults if
    the file does not exist).  Otherwise falls back to
    ``~/.config/vimimswitch/config.json``.

    Returns the effective configuration dict (always has all default keys).
    """
    config, _ok = _load_checked(config_path)
    return config


# ------------------------------------------------------------------
# ConfigManager
# ------------------------------------------------------------------

class ConfigManager:
    """Owns the settings snapshot and its JSON file."""

    def __init__(self, config_path: str | None = None):
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._lock = threading.Lock()
        self._settings = IMSwitchSettings()
        self._load_config()

    # -- internal -------------------------------------------------------

    def _load_config(self) -> bool:
        """Defaults overlaid with the file (if exists).

        A rejected file leaves the current snapshot in place and returns False.
        """
        conf, ok = _load_checked(self._config_path)
        if not ok:
            return False
        snapshot = IMSwitchSettings.from_dict(conf)
        with self._lock:
            self._settings = snapshot
        return True

    # -- public ---------------------------------------------------------

    @property
    def settings(self) -> IMSwitchSettings:
        """Current snapshot.  Callers keep it for the duration of one task."""
        return self._settings

    def reload(self) -> bool:
        """Reload configuration from file.

        Returns False, keeping the previous settings, if the file is invalid.
        """
        try:
            return self._load_config()
        except Exception:
            logger.exception("Config reload failed")
            return False

    def update(self, updates: dict) -> IMSwitchSettings:
        """Validate *updates* on top of the current snapshot and swap it in.

        Raises ``ValueError`` (and keeps the old snapshot) if the result is
        invalid.
        """
        with self._lock:
            unknown = set(updates) - set(DEFAULT_CONFIG)
            if unknown:
                raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
            merged = dict(self._settings.to_dict(), **updates)
            self._settings = replace(self._settings, **validate_config(merged))
            return self._settings

    def save(self, target_path: str | None = None) -> bool:
        """Atomically save configuration to file. Returns True on success."""
        save_path = target_path or self._config_path
        try:
            save_json(save_path, self._settings.to_dict())
            return True
        except OSError as exc:
            logger.error("Cannot save config to %s: %s", save_path, exc)
            return False

    def reset_to_defaults(self) -> None:
        """Reset configuration to DEFAULT_CONFIG."""
        with self._lock:
            self._settings = IMSwitchSettings()

    @property
    def config_path(self) -> str:
        """Current config file path."""
        return self._config_path
