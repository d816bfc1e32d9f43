from typing import NoReturn

from fastapi import HTTPException, status

from src.core.allocation.errors import AllocationEngineError

HTTP_422_UNPROCESSABLE = getattr(
    status,
    "HTTP_422_UNPROCESSABLE_CONTENT",
    status.HTTP_422_UNPROCESSABLE_ENTITY,
)


def raise_allocation_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, AllocationEngineError):
        raise HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail={"error_kind": exc.error_kind, "message": exc.message},
        ) from exc
    raise exc
