"""
Error taxonomy surfaced to API callers.

Each error is an HTTPException so services can raise them directly and
FastAPI renders them with the matching status code.
"""
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Malformed or missing input (400)."""

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
        self.errors = errors or []


class UnauthorizedError(HTTPException):
    """Missing/invalid token or bad credentials (401)."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(HTTPException):
    """Unknown id, or an existing resource the caller may not touch (404)."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    """Duplicate identity (409)."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
