"""Response helpers shared by the tool surfaces."""

from typing import Any
from fastapi.responses import JSONResponse
from models.tools import ErrorInfo


def present_conversion_rate(payload: Any, as_string: bool = False) -> Any:
    """Round conversionRate to two decimals for display; other payloads pass through."""
    if not isinstance(payload, dict) or "conversionRate" not in payload:
        return payload

    rate = round(float(payload["conversionRate"]), 2)
    return {**payload, "conversionRate": f"{rate:.2f}" if as_string else rate}


def error_response(error: ErrorInfo) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})
