"""
Logging helper module for terminal-first logging.
All output goes to stdout with formatted prefixes, and also to a log file.

The log file is opened on first use under VOICECAL_LOG_DIR (default
~/.voicecal/logs). Set VOICECAL_LOG_FILE=0 to log to stdout only.
"""

import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

_DEFAULT_LOG_DIR = Path.home() / ".voicecal" / "logs"

_log_dir: Optional[Path] = None
_file_enabled: Optional[bool] = None
_log_file_path: Optional[Path] = None
_log_file: Optional[TextIO] = None
_log_lock = threading.RLock()


def _resolve_log_dir() -> Path:
    if _log_dir is not None:
        return _log_dir
    env_dir = os.environ.get("VOICECAL_LOG_DIR")
    return Path(env_dir).expanduser() if env_dir else _DEFAULT_LOG_DIR


def _file_logging_enabled() -> bool:
    if _file_enabled is not None:
        return _file_enabled
    return os.environ.get("VOICECAL_LOG_FILE", "1").lower() not in ("0", "false", "no")


def _open_log_file() -> Optional[TextIO]:
    """Open the session log file, or return None if file logging is off or fails."""
    global _log_file, _log_file_path, _file_enabled

    with _log_lock:
        if _log_file is not None:
            return _log_file
        if not _file_logging_enabled():
            return None

        log_dir = _resolve_log_dir()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            _log_file_path = log_dir / f"voicecal_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            _log_file = open(_log_file_path, 'a', encoding='utf-8')
        except OSError as err:
            # Stay on stdout for the rest of the session
            _file_enabled = False
            _log_file_path = None
            print(f"[WARN] Unable to open log file in {log_dir}: {err}")
            return None
        return _log_file


def _log(message: str):
    """Write message to both stdout and log file."""
    print(message)
    with _log_lock:
        log_file = _open_log_file()
        if log_file is not None:
            log_file.write(message + '\n')
            log_file.flush()


class Log:
    """Simple logging class that outputs to stdout and log file with formatted prefixes."""

    @staticmethod
    def configure(log_dir: Optional[Path] = None, to_file: Optional[bool] = None):
        """
        Override the log directory and/or file logging switch.
        Closes any open log file so the next message starts a new one.
        """
        global _log_dir, _file_enabled, _log_file, _log_file_path
        with _log_lock:
            if _log_file is not None:
                _log_file.close()
            _log_file = None
            _log_file_path = None
            _log_dir = Path(log_dir) if log_dir is not None else None
            _file_enabled = to_file

    @staticmethod
    def section(title: str):
        """Print a section header: blank line + '===== TITLE ====='"""
        _log("")
        _log(f"===== {title} =====")

    @staticmethod
    def info(message: str):
        """Print an info message: '[INFO] message'"""
        _log(f"[INFO] {message}")

    @staticmethod
    def warn(message: str):
        """Print a warning message: '[WARN] message'"""
        _log(f"[WARN] {message}")

    @staticmethod
    def error(message: str):
        """Print an error message: '[ERROR] message'"""
        _log(f"[ERROR] {message}")

    @staticmethod
    def kv(pairs: dict):
        """
        Print key-value pairs: '[KV] key=value | key2=value2'

        Args:
            pairs: Dictionary of key-value pairs to print
        """
        kv_string = " | ".join([f"{k}={v}" for k, v in pairs.items()])
        _log(f"[KV] {kv_string}")

    @staticmethod
    def get_log_path() -> Optional[str]:
        """Get the path to the current log file, if one is open."""
        _open_log_file()
        return str(_log_file_path) if _log_file_path is not None else None
