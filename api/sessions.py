# In-memory session store: {session_id: DashboardSession}, oldest first
from __future__ import annotations

import uuid
from typing import Dict, Optional

from autobi.session import DashboardSession

MAX_SESSIONS = 100

SESSIONS: Dict[str, DashboardSession] = {}


def create(session: DashboardSession) -> str:
    """Store a new session, evicting the oldest ones beyond ``MAX_SESSIONS``."""
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    while len(SESSIONS) > MAX_SESSIONS:
        SESSIONS.pop(next(iter(SESSIONS)))
    return session_id


def get(session_id: str) -> Optional[DashboardSession]:
    return SESSIONS.get(session_id)


def save(session_id: str, session: DashboardSession) -> None:
    """Replace the stored session (last write wins)."""
    SESSIONS[session_id] = session


def delete(session_id: str) -> bool:
    return SESSIONS.pop(session_id, None) is not None
