"""Domain errors raised by the service layer.

Each error is an ``HTTPException`` so FastAPI renders it as ``{"detail": ...}``
without a dedicated handler.
"""

from fastapi import HTTPException


class ValidationError(HTTPException):
    """Bad input: out-of-range progress, invalid date range, wrong employee role"""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class ConflictError(HTTPException):
    """Requested slot or unique value already taken"""

    def __init__(self, detail: str = "The selected time slot is not available"):
        super().__init__(status_code=400, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class PermissionDeniedError(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=403, detail=detail)


class StateError(HTTPException):
    """Operation not allowed from the entity's current status"""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)
