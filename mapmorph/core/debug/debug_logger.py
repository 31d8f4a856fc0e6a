"""
debug_logger.py
---------------
Console diagnostics for the map engine.

Lines are filtered by category and level, tagged with the calling class,
and colored per tag. Two helpers exist for the animation loop, which runs
at display rate: throttled() keeps per-frame traces readable, and
residual() reports numeric checks against a tolerance.
"""

import sys
import time
from datetime import datetime
from typing import Dict


# ===========================================================
# Logger Configuration
# ===========================================================

class LoggerConfig:
    """Which parts of the map engine may print, and how much."""

    ENABLE_LOGGING = True
    LOG_LEVEL = "INFO"  # NONE, ERROR, WARN, INFO, VERBOSE

    CATEGORIES = {
        # Services
        "system": True,
        "loading": False,
        "event_manager": False,

        # Runtime
        "state": True,
        "input": False,

        # Map geometry
        "layout": False,
        "geometry": False,

        # Transitions
        "transition": True,
        "affine": False,
        "mapping": False,

        # Rendering
        "render": True,
        "drawing": False,
    }

    SHOW_TIMESTAMP = True
    SHOW_CATEGORY = True
    SHOW_LEVEL = True

    # Minimum spacing between two throttled lines with the same key
    THROTTLE_MS = 500.0


# ===========================================================
# ANSI Colors
# ===========================================================

class Colors:
    """ANSI escape codes for terminal colors."""
    RESET = "\033[0m"
    WHITE = "\033[97m"
    GREEN = "\033[92m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"


# ===========================================================
# Debug Logger
# ===========================================================

class DebugLogger:
    """Static, category-filtered console logger."""

    LINE_LENGTH = 59

    # tag -> (color, level)
    TAGS = {
        "INIT": (Colors.WHITE, "INFO"),
        "SYSTEM": (Colors.MAGENTA, "INFO"),
        "STATE": (Colors.CYAN, "INFO"),
        "ACTION": (Colors.GREEN, "INFO"),
        "TRACE": (Colors.BLUE, "VERBOSE"),
        "WARN": (Colors.YELLOW, "WARN"),
    }

    LEVEL_VALUES = {
        "NONE": 0,
        "ERROR": 1,
        "WARN": 2,
        "INFO": 3,
        "VERBOSE": 4
    }

    STATUS_COLORS = {
        "OK": Colors.GREEN,
        "LOADING": Colors.CYAN,
        "DEGRADED": Colors.YELLOW,
        "FAIL": Colors.RED,
    }

    _last_emit: Dict[str, float] = {}

    # ===========================================================
    # Filtering & Output
    # ===========================================================

    @staticmethod
    def enabled(category: str, level: str = "INFO") -> bool:
        """Would a line of this category and level be printed?"""
        if not LoggerConfig.ENABLE_LOGGING:
            return False
        # Warnings always pass the category filter
        if level not in ("WARN", "ERROR") and not LoggerConfig.CATEGORIES.get(category, False):
            return False
        values = DebugLogger.LEVEL_VALUES
        return values.get(level, 3) <= values.get(LoggerConfig.LOG_LEVEL, 3)

    @staticmethod
    def _caller() -> str:
        """Class (or module, in PascalCase) that called the public method."""
        try:
            frame = sys._getframe(3)
        except ValueError:
            return "Unknown"

        owner = frame.f_locals.get("self")
        if owner is not None:
            return type(owner).__name__
        cls = frame.f_locals.get("cls")
        if isinstance(cls, type):
            return cls.__name__

        module = frame.f_code.co_filename.replace("\\", "/").rsplit("/", 1)[-1][:-3]
        return "".join(p.capitalize() for p in module.split("_"))

    @staticmethod
    def _emit(tag: str, message: str, category: str) -> None:
        color, level = DebugLogger.TAGS[tag]
        if not DebugLogger.enabled(category, level):
            return

        parts = []
        if LoggerConfig.SHOW_TIMESTAMP:
            parts.append(f"[{datetime.now().strftime('%H:%M:%S')}]")
        parts.append(f"[{DebugLogger._caller()}]")
        if LoggerConfig.SHOW_LEVEL:
            parts.append(f"[{tag}]")
        if LoggerConfig.SHOW_CATEGORY:
            parts.append(f"[{category}]")
        print(f"{color}{''.join(parts)} {message}{Colors.RESET}")

    # ===========================================================
    # Public Log Methods
    # ===========================================================

    @staticmethod
    def init(msg: str = "", category: str = "system"):
        """Initialization log. Empty message prints blank line."""
        if not msg.strip():
            if LoggerConfig.ENABLE_LOGGING:
                print()
            return
        DebugLogger._emit("INIT", msg, category)

    @staticmethod
    def system(msg: str, category: str = "system"):
        DebugLogger._emit("SYSTEM", msg, category)

    @staticmethod
    def state(msg: str, category: str = "state"):
        """Lifecycle or level change."""
        DebugLogger._emit("STATE", msg, category)

    @staticmethod
    def action(msg: str, category: str = "system"):
        DebugLogger._emit("ACTION", msg, category)

    @staticmethod
    def trace(msg: str, category: str = "affine"):
        """Verbose numeric detail."""
        DebugLogger._emit("TRACE", msg, category)

    @staticmethod
    def warn(msg: str, category: str = "system"):
        """Degraded path taken; printed whatever the category filter says."""
        DebugLogger._emit("WARN", msg, category)

    # ===========================================================
    # Animation Helpers
    # ===========================================================

    @staticmethod
    def throttled(key: str, msg: str, category: str = "render",
                  interval_ms: float = None) -> bool:
        """
        Trace at most once per interval for a given key.

        Meant for code that runs every frame. Returns True when the line
        was let through the throttle.
        """
        if not DebugLogger.enabled(category, "VERBOSE"):
            return False
        interval = LoggerConfig.THROTTLE_MS if interval_ms is None else interval_ms
        now = time.perf_counter() * 1000.0
        last = DebugLogger._last_emit.get(key)
        if last is not None and now - last < interval:
            return False
        DebugLogger._last_emit[key] = now
        DebugLogger._emit("TRACE", msg, category)
        return True

    @staticmethod
    def residual(name: str, value: float, tolerance: float, category: str = "affine") -> bool:
        """Trace a numeric residual; warn when it exceeds tolerance. Returns value <= tolerance."""
        ok = value <= tolerance
        if ok:
            DebugLogger._emit("TRACE", f"{name}: residual {value:.2e} (ok)", category)
        else:
            DebugLogger._emit("WARN", f"{name}: residual {value:.2e} exceeds {tolerance:.1e}", category)
        return ok

    @staticmethod
    def reset_throttle() -> None:
        DebugLogger._last_emit.clear()

    # ===========================================================
    # Init Report Formatting
    # ===========================================================

    @staticmethod
    def section(title: str):
        """Print a section header."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        rule = "─" * DebugLogger.LINE_LENGTH
        heading = f"[{title}]".center(DebugLogger.LINE_LENGTH)
        print(f"\n{Colors.WHITE}{rule}\n{heading}{Colors.RESET}\n")

    @staticmethod
    def init_entry(module: str, status: str = "OK"):
        """Print a dotted diagnostic entry."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        print(DebugLogger._render_entry(module, status))

    @staticmethod
    def init_sub(detail: str, level: int = 1):
        """Print indented sub-detail."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        print(f"{' ' * (level * 4)}• {Colors.WHITE}{detail}{Colors.RESET}")

    @staticmethod
    def _render_entry(module: str, status: str) -> str:
        """Status line: module name, dot leader, colored [STATUS]."""
        color = DebugLogger.STATUS_COLORS.get(status.upper(), Colors.WHITE)
        prefix = f"> {module}"
        status_str = f"[{status}]"
        pad = max(30 - len(prefix), 1)
        dots = max(DebugLogger.LINE_LENGTH - (len(prefix) + pad + 1 + len(status_str)), 1)
        return f"{Colors.WHITE}{prefix}{' ' * pad}{'.' * dots} {color}{status_str}{Colors.RESET}"
