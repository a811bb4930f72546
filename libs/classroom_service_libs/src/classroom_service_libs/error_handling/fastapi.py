"""FastAPI exception handlers for ClassroomError and unexpected failures."""

from __future__ import annotations

from uuid import UUID, uuid4

from classroom_common.error_enums import ClassroomErrorCode
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from classroom_service_libs.error_handling.classroom_error import ClassroomError
from classroom_service_libs.error_handling.factories import create_error_detail
from classroom_service_libs.logging_utils import create_service_logger

logger = create_service_logger("classroom_service_libs.error_handling.fastapi")

ERROR_CODE_TO_STATUS: dict[ClassroomErrorCode, int] = {
    ClassroomErrorCode.INVALID_CREDENTIALS: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.INVALID_TOKEN: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.INVALID_REFRESH_TOKEN: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ClassroomErrorCode.AUTHENTICATION_ERROR: status.HTTP_401_UNAUTHORIZED,
    ClassroomErrorCode.AUTHORIZATION_ERROR: status.HTTP_403_FORBIDDEN,
    ClassroomErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ClassroomErrorCode.DELIVERY_FAILURE: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error_code: ClassroomErrorCode) -> int:
    return ERROR_CODE_TO_STATUS.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _correlation_id(request: Request) -> UUID:
    correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id if isinstance(correlation_id, UUID) else uuid4()


def register_error_handlers(app: FastAPI, service_name: str = "classroom_service") -> None:
    """Install handlers so every failure leaves the service as ``{"error": ErrorDetail}``."""

    @app.exception_handler(ClassroomError)
    async def handle_classroom_error(request: Request, exc: ClassroomError) -> JSONResponse:
        status_code = status_for(exc.error_code)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            f"{exc.error_detail.operation} failed: {exc.error_detail.message}",
            extra={
                "correlation_id": exc.correlation_id,
                "error_code": exc.error_code.value,
                "path": request.url.path,
                "status_code": status_code,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.error_detail.model_dump(mode="json")},
            headers={"X-Correlation-ID": exc.correlation_id},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        detail = create_error_detail(
            error_code=ClassroomErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            service=service_name,
            operation=request.url.path,
            correlation_id=_correlation_id(request),
            details={"errors": [
                {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": detail.model_dump(mode="json")},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = _correlation_id(request)
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=True,
            extra={"correlation_id": str(correlation_id)},
        )
        detail = create_error_detail(
            error_code=ClassroomErrorCode.UNKNOWN_ERROR,
            message="Internal server error",
            service=service_name,
            operation=request.url.path,
            correlation_id=correlation_id,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": detail.model_dump(mode="json")},
        )
