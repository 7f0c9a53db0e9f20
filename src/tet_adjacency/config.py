"""Global configuration for tet-adjacency.

This module provides a package-wide configuration surface: the logging level
of the ``tet_adjacency`` logger, environment helpers, and the defaults used
when a mesh is built (the index numbering flag). Values can be changed
globally with `configure` or temporarily with the `use` context manager.
"""

from __future__ import annotations

import contextlib
import logging
import os
from typing import Any, Iterator


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
_LOGGER = logging.getLogger("tet_adjacency.config")
_PACKAGE_LOGGER = logging.getLogger("tet_adjacency")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    """Parse a logging level string or int into a `logging` level constant.

    Args:
        val: The desired level (e.g., "DEBUG", 10). May be None.
        default: Fallback level if `val` cannot be parsed.

    Returns:
        An integer logging level (e.g., logging.DEBUG).
    """
    if val is None:
        return default
    if isinstance(val, int):
        return val
    lvl = getattr(logging, str(val).strip().upper(), None)
    if isinstance(lvl, int):
        return lvl
    return default


def set_log_level(level: str | int = "WARNING") -> None:
    """Set the package logger level programmatically.

    Args:
        level: A standard logging level name or integer.
    """
    _PACKAGE_LOGGER.setLevel(_parse_log_level(level))


# Default level can be overridden by env.
set_log_level(os.getenv("TET_ADJACENCY_LOGLEVEL", "WARNING"))


# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
def bool_env(varname: str, default: bool) -> bool:
    """Read an environment variable and interpret it as a boolean.

    True values: 'y', 'yes', 't', 'true', 'on', '1'.
    False values: 'n', 'no', 'f', 'false', 'off', '0'.

    Args:
        varname: The name of the environment variable.
        default: The default value if the variable is unset.

    Returns:
        A boolean value parsed from the environment.
    """
    val = os.getenv(varname, str(default))
    val = val.lower()
    if val in ("y", "yes", "t", "true", "on", "1"):
        return True
    if val in ("n", "no", "f", "false", "off", "0"):
        return False
    raise ValueError(f"invalid truth value {val!r} for environment {varname!r}")


def int_env(varname: str, default: int) -> int:
    """Read an environment variable and interpret it as an integer.

    Args:
        varname: The name of the environment variable.
        default: The default value if the variable is unset.

    Returns:
        The integer value parsed from the environment.
    """
    return int(os.getenv(varname, str(default)))


# -----------------------------------------------------------------------------
# Config singleton
# -----------------------------------------------------------------------------
class Config:
    """Defaults used when building meshes.

    Attributes:
        fortran_numbering (bool): Default for the numbering flag passed to
            `Mesh.from_file`. Kept for interface compatibility; indices are
            always converted from 1-based to 0-based.
    """

    _FIELDS = ("fortran_numbering",)

    def __init__(self) -> None:
        """Initialize config using environment defaults."""
        self.fortran_numbering = bool_env("TET_ADJACENCY_FORTRAN_NUMBERING", True)
        _LOGGER.debug("Config initialized: %s", self.as_dict())

    def as_dict(self) -> dict[str, Any]:
        """Return the current settings as a plain dict."""
        return {name: getattr(self, name) for name in self._FIELDS}

    def configure(self, **overrides: Any) -> Config:
        """Update one or more settings.

        Args:
            **overrides: Setting names and their new values.

        Returns:
            The `Config` instance (for chaining).

        Raises:
            AttributeError: If an unknown setting name is given.
        """
        for name, value in overrides.items():
            if name not in self._FIELDS:
                raise AttributeError(f"Unknown setting {name!r}")
            setattr(self, name, value)
        _LOGGER.info("Reconfigured: %s", self.as_dict())
        return self

    @contextlib.contextmanager
    def use(self, **overrides: Any) -> Iterator[Config]:
        """Temporarily override settings within a context manager.

        Yields:
            The `Config` instance. Previous values are restored on exit.
        """
        prev = self.as_dict()
        try:
            yield self.configure(**overrides)
        finally:
            for name, value in prev.items():
                setattr(self, name, value)
            _LOGGER.info("Restored previous settings: %s", prev)


config = Config()


def configure(**overrides: Any) -> Config:
    """Update settings on the global config (module-level)."""
    return config.configure(**overrides)


def use(**overrides: Any) -> contextlib.AbstractContextManager[Config]:
    """Temporarily override settings on the global config (module-level)."""
    return config.use(**overrides)
