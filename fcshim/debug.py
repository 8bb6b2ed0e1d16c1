"""Parsing of multi-level log level settings for Firecracker and its tooling."""

from __future__ import annotations

import logging
from typing import Optional

LOG_LEVEL_DEBUG = "debug"
LOG_LEVEL_ERROR = "error"
LOG_LEVEL_INFO = "info"
LOG_LEVEL_WARNING = "warning"

LOG_LEVEL_FIRECRACKER_DEBUG = "firecracker:debug"
LOG_LEVEL_FIRECRACKER_ERROR = "firecracker:error"
LOG_LEVEL_FIRECRACKER_INFO = "firecracker:info"
LOG_LEVEL_FIRECRACKER_WARNING = "firecracker:warning"
LOG_LEVEL_FIRECRACKER_OUTPUT = "firecracker:output"

LOG_LEVEL_FIRECRACKER_SDK_DEBUG = "firecracker-go-sdk:debug"
LOG_LEVEL_FIRECRACKER_SDK_ERROR = "firecracker-go-sdk:error"
LOG_LEVEL_FIRECRACKER_SDK_INFO = "firecracker-go-sdk:info"
LOG_LEVEL_FIRECRACKER_SDK_WARNING = "firecracker-go-sdk:warning"

LOG_LEVEL_FIRECRACKER_CONTAINERD_DEBUG = "firecracker-containerd:debug"
LOG_LEVEL_FIRECRACKER_CONTAINERD_ERROR = "firecracker-containerd:error"
LOG_LEVEL_FIRECRACKER_CONTAINERD_INFO = "firecracker-containerd:info"
LOG_LEVEL_FIRECRACKER_CONTAINERD_WARNING = "firecracker-containerd:warning"

_TOP_LEVELS = {
    LOG_LEVEL_DEBUG: "debug",
    LOG_LEVEL_ERROR: "error",
    LOG_LEVEL_INFO: "info",
    LOG_LEVEL_WARNING: "warning",
}

_FIRECRACKER_LEVELS = {
    LOG_LEVEL_FIRECRACKER_DEBUG: "Debug",
    LOG_LEVEL_FIRECRACKER_ERROR: "Error",
    LOG_LEVEL_FIRECRACKER_INFO: "Info",
    LOG_LEVEL_FIRECRACKER_WARNING: "Warning",
}

_SDK_LEVELS = {
    LOG_LEVEL_FIRECRACKER_SDK_DEBUG: logging.DEBUG,
    LOG_LEVEL_FIRECRACKER_SDK_ERROR: logging.ERROR,
    LOG_LEVEL_FIRECRACKER_SDK_INFO: logging.INFO,
    LOG_LEVEL_FIRECRACKER_SDK_WARNING: logging.WARNING,
}

_CONTAINERD_LEVELS = {
    LOG_LEVEL_FIRECRACKER_CONTAINERD_DEBUG: logging.DEBUG,
    LOG_LEVEL_FIRECRACKER_CONTAINERD_ERROR: logging.ERROR,
    LOG_LEVEL_FIRECRACKER_CONTAINERD_INFO: logging.INFO,
    LOG_LEVEL_FIRECRACKER_CONTAINERD_WARNING: logging.WARNING,
}

_TOP_FIRECRACKER_NAMES = {
    "debug": "Debug",
    "error": "Error",
    "info": "Info",
    "warning": "Warning",
}

_TOP_LOGGING_LEVELS = {
    "debug": logging.DEBUG,
    "error": logging.ERROR,
    "info": logging.INFO,
    "warning": logging.WARNING,
}


class LogLevelError(ValueError):
    """Base class for problems with the configured log levels."""


class InvalidLogLevelError(LogLevelError):
    """Raised when an unknown log level is given."""

    def __init__(self, log_level: str) -> None:
        self.log_level = log_level
        super().__init__(f'log level "{log_level}" is an invalid log level')


class LogLevelAlreadySetError(LogLevelError):
    """Raised when more than one top level log level is given."""

    def __init__(self) -> None:
        super().__init__("only one value for top level log level can be set")


class FCLogLevelAlreadySetError(LogLevelError):
    """Raised when more than one Firecracker log level is given."""

    def __init__(self) -> None:
        super().__init__("only one value of firecracker log level can be set")


class FCSDKLogLevelAlreadySetError(LogLevelError):
    """Raised when more than one firecracker-go-sdk log level is given."""

    def __init__(self) -> None:
        super().__init__("only one value of firecracker-go-sdk log level can be set")


class FCContainerdLogLevelAlreadySetError(LogLevelError):
    """Raised when more than one firecracker-containerd log level is given."""

    def __init__(self) -> None:
        super().__init__("only one value of firecracker-containerd log level can be set")


class Helper:
    """Resolves a list of log level settings into per-component log levels."""

    def __init__(self, *log_levels: str, shim_debug: bool = False) -> None:
        self.log_levels = list(log_levels)
        self.shim_debug = shim_debug
        self._top: Optional[str] = None
        self._firecracker: str = ""
        self._firecracker_output = False
        self._sdk: Optional[int] = None
        self._containerd: Optional[int] = None
        for level in log_levels:
            self._apply(level.strip())

    def _apply(self, level: str) -> None:
        if level in _TOP_LEVELS:
            if self._top is not None:
                raise LogLevelAlreadySetError()
            self._top = _TOP_LEVELS[level]
        elif level in _FIRECRACKER_LEVELS:
            if self._firecracker:
                raise FCLogLevelAlreadySetError()
            self._firecracker = _FIRECRACKER_LEVELS[level]
        elif level == LOG_LEVEL_FIRECRACKER_OUTPUT:
            self._firecracker_output = True
        elif level in _SDK_LEVELS:
            if self._sdk is not None:
                raise FCSDKLogLevelAlreadySetError()
            self._sdk = _SDK_LEVELS[level]
        elif level in _CONTAINERD_LEVELS:
            if self._containerd is not None:
                raise FCContainerdLogLevelAlreadySetError()
            self._containerd = _CONTAINERD_LEVELS[level]
        else:
            raise InvalidLogLevelError(level)

    def firecracker_log_level(self) -> str:
        """Return Firecracker's log level name, or '' when none applies."""
        if self._firecracker:
            return self._firecracker
        if self._top is not None:
            return _TOP_FIRECRACKER_NAMES[self._top]
        return ""

    def log_firecracker_output(self) -> bool:
        """Return whether Firecracker's stdout and stderr should be logged."""
        return self._top == "debug" or self._firecracker_output

    def firecracker_sdk_log_level(self) -> Optional[int]:
        """Return the logging level for the SDK, or None when not set."""
        if self._sdk is not None:
            return self._sdk
        if self._top is not None:
            return _TOP_LOGGING_LEVELS[self._top]
        return None

    def firecracker_containerd_log_level(self) -> Optional[int]:
        """Return the logging level for firecracker-containerd, or None when not set."""
        if self._containerd is not None:
            return self._containerd
        if self._top == "debug" or self.shim_debug:
            return logging.DEBUG
        if self._top is not None:
            return _TOP_LOGGING_LEVELS[self._top]
        return None