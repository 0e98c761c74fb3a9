from fastapi import HTTPException

from ..core.swap.errors import ErrorCategory, SwapError

STATUS_BY_CATEGORY = {
    ErrorCategory.INPUT: 400,
    ErrorCategory.ROUTE: 422,
    ErrorCategory.APPROVAL: 502,
    ErrorCategory.EXECUTION: 502,
    ErrorCategory.TRANSIENT: 503,
    ErrorCategory.STATE: 409,
}


def to_http_exception(exc: SwapError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CATEGORY.get(exc.category, 500),
        detail={"category": exc.category.value, "message": exc.message},
    )
