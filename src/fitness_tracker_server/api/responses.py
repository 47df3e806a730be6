"""Success response envelope."""

from typing import Any

from litestar import Response
from litestar.status_codes import HTTP_200_OK


def success(
    data: Any = None, message: str = "Success", status_code: int = HTTP_200_OK
) -> Response[dict[str, Any]]:
    """Wrap data in ``{"status": "success", "message": ..., "data": ...}``."""
    content: dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        content["data"] = data
    return Response(content=content, status_code=status_code)
