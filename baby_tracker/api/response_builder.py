"""
Response builder utilities for the {success, data, error} envelope.
"""

from typing import Any, Iterable

from fastapi.responses import JSONResponse


def build_response(data: Any = None) -> dict[str, Any]:
    """Build a success envelope."""
    return {"success": True, "data": data}


def build_error_response(error: str, status_code: int = 400) -> JSONResponse:
    """Build a failure envelope with the given status."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


def serialize(records: Iterable[Any]) -> list[dict[str, Any]]:
    """Wire representation of several model instances."""
    return [record.to_response() for record in records]
