from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class DomainError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 404)


class ConflictError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 409)


class InvalidSeatLabel(ValueError):
    pass


class SelectionIncomplete(Exception):
    def __init__(self, selected: int, required: int):
        self.selected = selected
        self.required = required
        super().__init__(f"{selected} of {required} seats selected")


class BookedSeatsUnavailable(Exception):
    """Booked-seat list for a flight could not be fetched."""


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception(f"Domain error: {exc.message}")
    else:
        logger.warning(f"Domain error: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    ValueError: value_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
