from __future__ import annotations

import secrets
from dataclasses import dataclass

ADMIN_PASSWORD_HEADER = "x-admin-password"


@dataclass(frozen=True)
class AdminCheck:
    ok: bool
    status: int = 200
    error: str | None = None


def require_admin_password(provided: str | None, required: str | None) -> AdminCheck:
    # No configured password means the instance runs unlocked.
    if not required or not required.strip():
        return AdminCheck(ok=True)

    candidate = (provided or "").strip()
    if not candidate:
        return AdminCheck(ok=False, status=401, error="Missing admin password.")

    if not secrets.compare_digest(candidate.encode("utf-8"), required.strip().encode("utf-8")):
        return AdminCheck(ok=False, status=403, error="Invalid admin password.")

    return AdminCheck(ok=True)
