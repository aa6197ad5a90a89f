# connections_manager.py
"""
connections_manager.py
----------------------
Manages backend connections and sessions

Holds in-memory sessions to content-management backends.

Creates sessions as needed and reuses existing ones when possible.
"""

import logging

from connectors.rest_backend_connector import BackendSession

logger = logging.getLogger(__name__)

######################### Sessions #########################

# variable to hold active sessions:

_active_sessions: dict[tuple[str, str], BackendSession] = {}
# key: (hostURL, user) tuple
# value: BackendSession instance
# This allows unique sessions per (hostURL, user) pair.


def get_session(backend_type: str, host_URL: str, user: str, password: str) -> BackendSession:
    """
    Get or create a backend session for the given parameters.
    Reuses existing sessions if one matches the (hostURL, user) pair.
    """
    key = (host_URL, user)
    if key in _active_sessions:
        return _active_sessions[key]

    if backend_type == "rest":
        session = BackendSession(host_URL, user, password)
    # Add other backend types here as needed
    else:
        raise ValueError(f"Unsupported backend type: {backend_type}")

    session.connect()
    logger.info("Connected to %s backend at %s as %s", backend_type, host_URL, user)
    _active_sessions[key] = session
    return session


def close_sessions() -> None:
    """Disconnect and forget every cached session."""
    while _active_sessions:
        _, session = _active_sessions.popitem()
        session.disconnect()
