"""Decisions about stdio that can be handled entirely inside the VM."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_AGENT_ONLY_SCHEMES = frozenset({"binary", "file"})


def is_agent_only_io(stdout: str) -> bool:
    """Return True if the stdout target is handled by the agent alone.

    That is the case for binary and file log targets.
    """
    try:
        parsed = urlsplit(stdout)
    except ValueError as exc:
        logger.debug("invalid URL %r: %s", stdout, exc)
        return False
    return parsed.scheme in _AGENT_ONLY_SCHEMES