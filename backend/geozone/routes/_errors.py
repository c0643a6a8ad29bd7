"""Translate failed zone operations into HTTP errors."""

from fastapi import HTTPException

from geozone.schemas.zone import ZoneErrorKind, ZoneOperationResult

ERROR_STATUS_CODES: dict[ZoneErrorKind, int] = {
    ZoneErrorKind.ZONE_NOT_FOUND: 404,
    ZoneErrorKind.PARENT_ZONE_NOT_FOUND: 404,
    ZoneErrorKind.PERMISSION_DENIED: 403,
    ZoneErrorKind.VALIDATION_FAILED: 422,
    ZoneErrorKind.HAS_CHILDREN: 409,
    ZoneErrorKind.HIERARCHY_INVALID: 409,
    ZoneErrorKind.QUOTA_EXCEEDED: 409,
    ZoneErrorKind.UNEXPECTED: 500,
}


def raise_for_failure(result: ZoneOperationResult) -> None:
    """Raise HTTPException when an operation did not succeed."""
    if result.success:
        return
    status_code = ERROR_STATUS_CODES.get(result.error_kind, 500)
    if status_code == 500:
        raise HTTPException(status_code=500, detail="Internal error while processing zone operation")
    raise HTTPException(status_code=status_code, detail=result.error)
