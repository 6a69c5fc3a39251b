"""Success envelope shared by every endpoint."""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """Wrap ``data`` as ``{"success": true, "data": ..., "message": ...}``."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    return body
