from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from ..sessions.state import TripSession, get_session


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def get_trip_session(user: dict = Depends(require_user)) -> TripSession:
    """The logged-in traveler's catalog, ledger and suggestion cache."""
    return get_session(user.get("memory_user_id") or user["username"])
