"""Colored mutation logger — ANSI-colored console tracing of the mutation lifecycle.

Each mutation walks the same phases; coloring them makes interleaved
mutations easy to follow in a terminal.

Color scheme:
    🔵 Cyan    — Optimistic write
    🟣 Blue    — Remote call
    🟡 Yellow  — Rollback
    🟠 Magenta — Invalidation
    🟢 Green   — Complete
    🔴 Red     — Errors
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Mutation Phases ──────────────────────────────────────────────────

class MutationPhase:
    """Lifecycle phases of a mutation, with colors and icons."""

    OPTIMISTIC = ("OPTIMISTIC", _Colors.CYAN, "⚡")
    REMOTE = ("REMOTE", _Colors.BLUE, "🌐")
    ROLLBACK = ("ROLLBACK", _Colors.YELLOW, "↩️")
    INVALIDATE = ("INVALIDATE", _Colors.MAGENTA, "♻️")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")
    ERROR = ("ERROR", _Colors.RED, "❌")


def _format_kwargs(kwargs: dict[str, Any], color: str) -> str:
    details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    return f" {color}({details}){_Colors.RESET}"


# ── MutationLogger ───────────────────────────────────────────────────

class MutationLogger:
    """Color-coded logger for mutation orchestrators.

    Usage:
        mlog = MutationLogger("stockflow.mutations")
        mlog.step_start(MutationPhase.OPTIMISTIC, "stock_entry", key=key)
        mlog.step_complete(MutationPhase.COMPLETE, "stock_entry")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, phase: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = phase
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += _format_kwargs(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_complete(self, phase: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = phase
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += _format_kwargs(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_error(self, phase: tuple[str, str, str], message: str, error: BaseException | None = None) -> None:
        """Log a failed phase in red."""
        label, _, icon = phase
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail at debug level (gray/dimmed)."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += _format_kwargs(kwargs, _Colors.DIM)
        self._logger.debug(formatted)

    @contextmanager
    def timed_step(self, phase: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with mlog.timed_step(MutationPhase.REMOTE, "create_stock_entry"):
                result = await gateway.create_entry(...)
        """
        self.step_start(phase, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(MutationPhase.ERROR, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(phase, f"{message} — {elapsed:.2f}s")
