"""Zone permission ranking."""

from datetime import datetime

from geozone.schemas.zone import ZoneAccessControl

__all__ = ["PERMISSION_LEVELS", "permission_rank", "find_access_entry", "grants_permission"]

# owner > admin > member > viewer
PERMISSION_LEVELS: dict[str, int] = {
    "viewer": 1,
    "member": 2,
    "admin": 3,
    "owner": 4,
}


def permission_rank(permission: str) -> int:
    """Rank of a permission level; unknown levels rank below viewer."""
    return PERMISSION_LEVELS.get(permission, 0)


def find_access_entry(
    access_list: list[ZoneAccessControl] | None, user_id: str
) -> ZoneAccessControl | None:
    if not access_list:
        return None
    return next((entry for entry in access_list if entry.user_id == user_id), None)


def grants_permission(
    entry: ZoneAccessControl | None, required: str, now: datetime
) -> bool:
    """Whether an ACL entry satisfies the required level at time ``now``.

    Missing and expired entries grant nothing.
    """
    if required not in PERMISSION_LEVELS:
        raise ValueError(f"Unknown permission level: {required}")
    if entry is None:
        return False
    if entry.expires_at is not None and entry.expires_at < now:
        return False
    return permission_rank(entry.permission) >= permission_rank(required)
