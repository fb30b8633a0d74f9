#!/usr/bin/env python3
"""
Trace Context - Correlation IDs using ContextVars

asyncio tasks copy the current context when they are created, so an
invocation id bound before an operation task is spawned is visible in
every log line that operation produces.

Usage:
    set_session_id(new_session_id())

    with bind_invocation(7):
        await backend.delete_asset(payload)   # logs carry invocation_id=7
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterator, Optional


session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
invocation_id_var: ContextVar[Optional[int]] = ContextVar("invocation_id", default=None)


def get_correlation_ids() -> Dict[str, object]:
    """Get all current correlation IDs as dict."""
    return {
        "session_id": session_id_var.get(),
        "invocation_id": invocation_id_var.get(),
    }


def new_session_id() -> str:
    return f"ses_{uuid.uuid4().hex[:8]}"


def set_session_id(session_id: str) -> None:
    """Set the session ID (call once at startup)."""
    session_id_var.set(session_id)


@contextmanager
def bind_invocation(invocation_id: int) -> Iterator[None]:
    token = invocation_id_var.set(invocation_id)
    try:
        yield
    finally:
        invocation_id_var.reset(token)
