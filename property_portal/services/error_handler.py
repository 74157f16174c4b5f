"""
Error handling service for consistent error response formatting and logging.

Every error leaves the API in one envelope:
``{"error": {"code", "message", "timestamp", "details"?, "request_id"}}``.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, List, Union
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from pydantic import ValidationError as PydanticValidationError
from property_portal.utils.exceptions import APIException, ValidationError
import logging
import uuid


class ErrorHandlerService:
    """
    Turns exceptions into JSON error responses and logs them once.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("property_portal.errors")

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format an error response in the common envelope.

        Args:
            error_code: Error code identifier
            message: Human-readable error message
            details: Optional list of per-field errors
            request_id: Request identifier for tracking

        Returns:
            Formatted error response dictionary
        """
        response = {
            "error": {
                "code": error_code,
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            }
        }

        if details:
            response["error"]["details"] = details

        if request_id:
            response["error"]["request_id"] = request_id

        return response

    def handle_api_exception(self, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = self.get_request_id(request)
        log = self.logger.error if exception.status_code >= 500 else self.logger.warning
        log(f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}")

        details = getattr(exception, "field_errors", None) if isinstance(exception, ValidationError) else None
        error_response = self.format_error_response(
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail,
            details=details,
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=exception.headers
        )

    def handle_validation_error(
        self,
        exception: Union[RequestValidationError, PydanticValidationError],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request and schema validation errors with per-field details.
        """
        request_id = self.get_request_id(request)
        validation_details = self.validation_details(exception)

        self.logger.warning(
            f"Validation Error [{request_id}]: {len(validation_details)} field errors"
        )

        error_response = self.format_error_response(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details=validation_details,
            request_id=request_id
        )
        return JSONResponse(status_code=422, content=error_response)

    def handle_database_error(self, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Handle database errors that escaped the service layer.

        Integrity violations become 409; anything else is a 500 without
        internal details.
        """
        request_id = self.get_request_id(request)

        if isinstance(exception, IntegrityError):
            error_code = "INTEGRITY_ERROR"
            message = "Data integrity constraint violation"
            status_code = 409

            constraint_info = self._extract_constraint_info(exception)
            if constraint_info:
                message = f"Constraint violation: {constraint_info}"
        else:
            error_code = "DATABASE_ERROR"
            message = "Database operation failed"
            status_code = 500

        self.logger.error(
            f"Database Error [{request_id}]: {error_code} - {exception}",
            exc_info=True
        )

        return JSONResponse(
            status_code=status_code,
            content=self.format_error_response(error_code=error_code, message=message, request_id=request_id)
        )

    def handle_http_exception(self, exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        request_id = self.get_request_id(request)
        self.logger.warning(f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}")

        error_response = self.format_error_response(
            error_code=f"HTTP_{exception.status_code}",
            message=str(exception.detail),
            request_id=request_id
        )
        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=getattr(exception, "headers", None)
        )

    def handle_unexpected_error(self, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = self.get_request_id(request)
        self.logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {exception}",
            exc_info=True
        )

        error_response = self.format_error_response(
            error_code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred. Please try again later.",
            request_id=request_id
        )
        return JSONResponse(status_code=500, content=error_response)

    @staticmethod
    def validation_details(
        exception: Union[RequestValidationError, PydanticValidationError]
    ) -> List[Dict[str, Any]]:
        details = []
        for error in exception.errors():
            details.append({
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            })
        return details

    @staticmethod
    def get_request_id(request: Optional[Request]) -> str:
        """The id assigned by the request logging middleware, or a fresh one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        error_msg = str(exception.orig).lower()

        if "unique" in error_msg:
            return "Duplicate value for unique field"
        elif "foreign key" in error_msg:
            return "Referenced record does not exist"
        elif "not null" in error_msg:
            return "Required field cannot be empty"
        elif "check constraint" in error_msg:
            return "Value does not meet validation requirements"

        return None
