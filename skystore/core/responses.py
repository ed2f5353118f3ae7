from typing import Any
from fastapi.responses import JSONResponse

def ok(data: Any, message: str = "") -> dict[str, Any]:
    return {"success": True, "data": data, "message": message}

def fail(message: str, status_code: int = 500, details: dict | None = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": message, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)

def not_implemented(message: str) -> JSONResponse:
    return JSONResponse(status_code=501, content={"success": False, "message": message})
