"""
Custom exceptions for CastCheck.

Provides a hierarchy of exceptions with error codes for consistent error handling.
"""
from typing import Any, Dict, List, Optional


class CastCheckError(Exception):
    """
    Base exception for all CastCheck errors.

    Attributes:
        error_code: Unique error code (e.g., CC-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "CC-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Extraction Errors (CC-1XX)
class ExtractionError(CastCheckError):
    """Error while producing an ExtractionResult from a document."""
    error_code = "CC-100"
    http_status = 422

    def __init__(self, message: str = "Failed to extract financial data", **kwargs):
        super().__init__(message, **kwargs)


class InvalidExtractionPayloadError(ExtractionError):
    """Extraction output could not be parsed into an ExtractionResult."""
    error_code = "CC-101"
    http_status = 422

    def __init__(self, message: str = "Extraction payload is not a valid ExtractionResult",
                 errors: Optional[List[Any]] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


class UnsupportedDocumentError(ExtractionError):
    """Document cannot be read by the configured extraction provider."""
    error_code = "CC-102"
    http_status = 422

    def __init__(self, message: str = "Document is not supported", **kwargs):
        super().__init__(message, **kwargs)


class ExtractionProviderNotFoundError(CastCheckError):
    """Configured extraction provider does not exist."""
    error_code = "CC-103"
    http_status = 500

    def __init__(self, provider: str, available: List[str], **kwargs):
        message = f"Unknown extraction provider '{provider}'. Available: {', '.join(available)}"
        super().__init__(message, details={"provider": provider, "available": available}, **kwargs)


class InvalidFileTypeError(CastCheckError):
    """Invalid file type uploaded."""
    error_code = "CC-104"
    http_status = 400

    def __init__(self, filename: str, expected_types: list, **kwargs):
        message = f"Invalid file type. Expected: {', '.join(expected_types)}"
        super().__init__(message, details={"filename": filename, "expected_types": expected_types}, **kwargs)


class FileTooLargeError(CastCheckError):
    """File exceeds maximum size limit."""
    error_code = "CC-105"
    http_status = 413

    def __init__(self, size: int, max_size: int, **kwargs):
        message = f"File too large. Maximum size: {max_size // (1024*1024)}MB"
        super().__init__(message, details={"size": size, "max_size": max_size}, **kwargs)


# Verification Errors (CC-2XX)
class VerificationError(CastCheckError):
    """Error inside the verification engine."""
    error_code = "CC-200"
    http_status = 500

    def __init__(self, message: str = "Verification failed", **kwargs):
        super().__init__(message, **kwargs)


class InvariantViolationError(VerificationError):
    """A check result broke the status/variance contract. Always a verifier bug."""
    error_code = "CC-201"
    http_status = 500

    def __init__(self, check_id: str, status: str, variance: float, **kwargs):
        message = f"Check {check_id} reported status '{status}' with variance {variance}"
        super().__init__(
            message,
            details={"check_id": check_id, "status": status, "variance": variance},
            **kwargs,
        )


# Configuration Errors (CC-3XX)
class ConfigurationError(CastCheckError):
    """Required configuration is missing or invalid."""
    error_code = "CC-300"
    http_status = 500

    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(message, **kwargs)


# External Service Errors (CC-9XX)
class ExternalServiceError(CastCheckError):
    """External service call failed."""
    error_code = "CC-900"
    http_status = 502

    def __init__(self, service_name: str, message: str = None, **kwargs):
        msg = message or f"External service '{service_name}' is unavailable"
        super().__init__(msg, details={"service": service_name}, **kwargs)
