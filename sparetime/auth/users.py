from __future__ import annotations

import os
from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _seed_users() -> None:
    """Pre-seed demo accounts on import.

    ``memory_user_id`` is the identity used with the long-term memory service.
    """
    _users["traveler"] = {
        "password_hash": _hash_password(os.getenv("SPARETIME_TRAVELER_PASSWORD", "traveler123")),
        "role": "user",
        "memory_user_id": "sparetime-traveler",
    }
    _users["admin"] = {
        "password_hash": _hash_password(os.getenv("SPARETIME_ADMIN_PASSWORD", "admin123")),
        "role": "admin",
        "memory_user_id": "sparetime-admin",
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role, memory_user_id}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {
            "username": username,
            "role": record["role"],
            "memory_user_id": record["memory_user_id"],
        }
    return None


_seed_users()
