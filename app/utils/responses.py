from datetime import datetime, timezone
from typing import Any, Optional, Dict
from uuid import uuid4

from fastapi import HTTPException, Request, status as http_status

from app.core.exceptions import (
    AppError,
    DatabaseError,
    NotFoundError,
    OwnershipError,
    StorageError,
    ValidationError,
)
from app.schemas.response import ApiResponse, ResponseMeta, ErrorDetail


def _request_id(request: Optional[Request]) -> str:
    if request is not None and hasattr(request.state, "request_id"):
        return request.state.request_id
    return str(uuid4())


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1"
) -> Dict[str, Any]:
    """Create a standardized API response as a dictionary.

    Returns a dict to be compatible with FastAPI's response_model=dict.
    """
    meta = ResponseMeta(
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
        api_version=api_version
    )

    data_dict: Dict[str, Any] = {}
    if isinstance(data, dict):
        data_dict = data
    elif hasattr(data, "model_dump"):
        data_dict = data.model_dump(mode="json")
    elif isinstance(data, list):
        data_dict = {
            "items": [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in data],
            "total": len(data),
        }
    elif data is None:
        data_dict = {}
    else:
        data_dict = {"value": data}

    response = ApiResponse(
        status=status,
        message=message,
        data=data_dict,
        meta=meta
    )
    return response.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None
) -> ErrorDetail:
    """Create a standardized error detail (RFC 7807)."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc)
    )


# Most specific classes first
_ERROR_STATUS = [
    (ValidationError, http_status.HTTP_400_BAD_REQUEST, "Validation Error"),
    (NotFoundError, http_status.HTTP_404_NOT_FOUND, "Not Found"),
    (OwnershipError, http_status.HTTP_403_FORBIDDEN, "Forbidden"),
    (StorageError, http_status.HTTP_502_BAD_GATEWAY, "Storage Error"),
    (DatabaseError, http_status.HTTP_500_INTERNAL_SERVER_ERROR, "Database Error"),
]


def http_exception_from_error(error: AppError, request: Optional[Request] = None) -> HTTPException:
    """Translate a domain error into an HTTPException carrying an ErrorDetail body."""
    status_code = http_status.HTTP_500_INTERNAL_SERVER_ERROR
    title = "Internal Server Error"
    for error_class, mapped_status, mapped_title in _ERROR_STATUS:
        if isinstance(error, error_class):
            status_code, title = mapped_status, mapped_title
            break

    error_detail = create_error_detail(
        title=title,
        status=status_code,
        detail=str(error),
        request=request,
    )
    return HTTPException(status_code=status_code, detail=error_detail.model_dump(mode="json"))
