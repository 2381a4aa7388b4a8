"""Estimator error handling.

Every error the pipeline raises on purpose derives from EstimatorError and
carries the HTTP status it maps to. main.py turns them into
``{"error": message}`` JSON responses.
"""
from typing import Any, Dict


class ErrorCode:
    """Error code constants."""

    AUTH_FAILED = "AUTH_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INFERENCE_FAILED = "INFERENCE_FAILED"
    EMPTY_MODEL_RESPONSE = "EMPTY_MODEL_RESPONSE"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"


class EstimatorError(Exception):
    """Base exception for estimator errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status the error is reported with
        code: Error code from ErrorCode constants
    """

    status_code = 500
    code = "ESTIMATOR_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class AuthError(EstimatorError):
    """Bad PIN or missing session. Never says which."""

    status_code = 401
    code = ErrorCode.AUTH_FAILED


class ValidationError(EstimatorError):
    """Rejected upload or form input."""

    status_code = 400
    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InferenceError(EstimatorError):
    """Provider transport/API failure. The message is for operators, not a stable contract."""

    status_code = 500
    code = ErrorCode.INFERENCE_FAILED


class EmptyModelResponse(InferenceError):
    code = ErrorCode.EMPTY_MODEL_RESPONSE

    def __init__(self, message: str = "Empty response from model"):
        super().__init__(message)


class StorageUnavailable(EstimatorError):
    status_code = 503
    code = ErrorCode.STORAGE_UNAVAILABLE

    def __init__(self, message: str = "Estimate storage is unavailable"):
        super().__init__(message)


class NotFound(EstimatorError):
    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
