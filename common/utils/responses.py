"""
Response envelopes shared by every route.

Successful responses look like `{"success": true, "data": ..., "message": ...}`;
failures look like `{"success": false, "error": {"message", "code", ...}}`.

Example:
    from common.utils import success_response

    @router.get("/circles/{circle_id}")
    async def get_circle(circle_id: str):
        circle = await membership_service.get_circle(circle_id)
        return success_response(format_circle(circle))
"""

from typing import Any, Dict, Optional


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Wrap a payload in the success envelope.

    Args:
        data: Serializable payload, omitted from the body when None
        message: Optional human-readable note, e.g. "Join request sent"
    """
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build the error envelope.

    Args:
        message: Human-readable error message
        code: Machine-readable code such as "ALREADY_MEMBER"
        details: Extra structured information, if any
    """
    error: Dict[str, Any] = {"message": message}
    if code:
        error["code"] = code
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


def list_response(
    items: list,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """Success envelope for a bare list, with its length under `count`."""
    body = success_response(items, message)
    body["data"] = items
    body["count"] = len(items)
    return body
