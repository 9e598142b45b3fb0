from datetime import datetime, UTC
from typing import Dict, Any, Optional
import os

STATUS_EMOJI = {
    "INFO": "ℹ️",
    "WARN": "⚠️",
    "ERROR": "❌",
    "DEBUG": "🔍",
    "OK": "✅",
}

# Log level hierarchy (lower number = more severe)
LOG_LEVELS = {
    "ERROR": 0,
    "WARN": 1,
    "WARNING": 1,
    "INFO": 2,
    "OK": 2,
    "DEBUG": 3,
}


class LogUtil:
    """
    Two-phase logger:
      - Bootstrap phase: env-driven (LOG_LEVEL)
      - Configured phase: config-driven (configure_from_config)

    Child loggers share the parent's level and tag lines with
    "<service>.<component>".

    Logging must NEVER raise.
    """

    def __init__(self, service_name: str, parent: Optional["LogUtil"] = None):
        self.service_name = service_name
        self._parent = parent

        env_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self._level = LOG_LEVELS.get(env_level, LOG_LEVELS["INFO"])
        self._configured = False

    @property
    def log_level(self) -> int:
        if self._parent is not None:
            return self._parent.log_level
        return self._level

    @property
    def debug_enabled(self) -> bool:
        return self.log_level >= LOG_LEVELS["DEBUG"]

    def child(self, component: str) -> "LogUtil":
        root = self._parent or self
        return LogUtil(f"{self.service_name}.{component}", parent=root)

    # -------------------------------------------------
    # Configuration phase
    # -------------------------------------------------

    def set_level(self, level: str) -> None:
        name = str(level or "").upper()
        if name in LOG_LEVELS:
            target = self._parent or self
            target._level = LOG_LEVELS[name]

    def configure_from_config(self, config: Dict[str, Any]) -> None:
        if self._configured:
            return

        try:
            self.set_level(config.get("LOG_LEVEL", ""))
            self._configured = True
            self.debug(f"[LOG CONFIGURED] level={config.get('LOG_LEVEL')}")
        except Exception:
            # Logging must never break the process
            pass

    # -------------------------------------------------
    # Internal formatting
    # -------------------------------------------------

    def _stamp(self, level: str, message: str, emoji: str):
        now = datetime.now(UTC).isoformat(timespec="seconds")
        symbol = emoji or STATUS_EMOJI.get(level, "")
        return f"[{now}][{self.service_name}][{level}]{symbol} {message}"

    def _emit(self, level: str, message: str, emoji: str = ""):
        try:
            if LOG_LEVELS.get(level, LOG_LEVELS["INFO"]) > self.log_level:
                return
            print(self._stamp(level, message, emoji), flush=True)
        except Exception:
            # Absolute last line of defense
            pass

    # -------------------------------------------------
    # Public API
    # -------------------------------------------------

    def info(self, message: str, emoji: str = STATUS_EMOJI["INFO"]):
        self._emit("INFO", message, emoji)

    def warn(self, message: str, emoji: str = STATUS_EMOJI["WARN"]):
        self._emit("WARN", message, emoji)

    def warning(self, message: str, emoji: str = STATUS_EMOJI["WARN"]):
        # Alias for compatibility with standard logging APIs
        self.warn(message, emoji)

    def error(self, message: str, emoji: str = STATUS_EMOJI["ERROR"]):
        self._emit("ERROR", message, emoji)

    def debug(self, message: str, emoji: str = STATUS_EMOJI["DEBUG"]):
        self._emit("DEBUG", message, emoji)

    def ok(self, message: str, emoji: str = STATUS_EMOJI["OK"]):
        self._emit("OK", message, emoji)
