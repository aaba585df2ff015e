from fastapi import HTTPException
from typing import Any, Dict, Optional

class KollectorException(HTTPException):
    """Base exception for the Kollector Scum API"""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class NotFoundException(KollectorException):
    """Resource not found"""
    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            status_code=404,
            detail=f"{resource} with id {resource_id} not found"
        )

class DuplicateError(KollectorException):
    """Resource already exists"""
    def __init__(self, field: str, value: Any):
        super().__init__(
            status_code=400,
            detail=f"{field} '{value}' already exists"
        )

class ValidationFailed(KollectorException):
    """Request is well-formed but breaks a business rule"""
    def __init__(self, message: str):
        super().__init__(status_code=400, detail=message)

class ExternalServiceError(KollectorException):
    """An upstream service (Discogs, object storage) failed"""
    def __init__(self, service: str, message: str):
        super().__init__(
            status_code=502,
            detail=f"{service} error: {message}"
        )
