"""
shared/utils/errors.py
Business-rule errors tied to a single input field.
"""

from fastapi import HTTPException, status


def field_error(message: str, field: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    """HTTPException whose detail is {"message": ..., "field": ...}."""
    return HTTPException(status_code=status_code, detail={"message": message, "field": field})
