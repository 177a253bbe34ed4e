"""
Error Codes and Exceptions for spot-ms.

Every failure a render request can hit is expressed as a SpotError
subclass carrying a machine-readable code and the HTTP status the API
layer should answer with.

Taxonomy:
    ValidationError     400  Bad or missing request fields
    ConfigurationError  500  Missing credential or background asset
    ProviderError       500  Text-to-speech call failed
    ProbeError          500  ffprobe failed or returned garbage
    MixExecutionError   500  ffmpeg mix failed

None of these are retried; the caller must reissue the request.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """
    Standardized error codes for API responses and logs.
    """
    INVALID_INPUT = "INVALID_INPUT"           # Bad request data
    CONFIGURATION = "CONFIGURATION_ERROR"     # Deployment is missing something
    PROVIDER_FAILED = "PROVIDER_FAILED"       # TTS provider error
    PROBE_FAILED = "PROBE_FAILED"             # Duration probe error
    MIX_FAILED = "MIX_FAILED"                 # Mix engine error
    INTERNAL_ERROR = "INTERNAL_ERROR"         # Unexpected error


class SpotError(Exception):
    """
    Base exception for render errors.

    Attributes:
        message: Concise, user-facing error message.
        code: Error code from ErrorCode class.
        status_code: HTTP status the API answers with.
        details: Optional dictionary with diagnostic context (logged,
            never sent to the client verbatim).
    """
    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict for structured logging and JSON clients."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(SpotError):
    """Raised when request fields are missing or malformed."""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, {"field": field} if field else None)
        self.field = field


class ConfigurationError(SpotError):
    """Raised when the deployment lacks a credential or the music bed."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFIGURATION, details)


class ProviderError(SpotError):
    """Raised when the text-to-speech call fails; message is the provider's."""
    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if status is not None:
            merged["provider_status"] = status
        super().__init__(message, ErrorCode.PROVIDER_FAILED, merged)
        self.status = status


class EngineError(SpotError):
    """
    Base for audio engine failures.

    Attributes:
        diagnostics: The engine's standard error output, for operators.
        returncode: Process exit status (None if the process never ran).
    """
    def __init__(
        self,
        message: str,
        code: str,
        diagnostics: str = "",
        returncode: Optional[int] = None,
    ):
        details: Dict[str, Any] = {}
        if returncode is not None:
            details["returncode"] = returncode
        if diagnostics:
            details["diagnostics"] = diagnostics
        super().__init__(message, code, details)
        self.diagnostics = diagnostics
        self.returncode = returncode


class ProbeError(EngineError):
    """Raised when the voice clip duration cannot be measured."""
    def __init__(self, message: str, diagnostics: str = "", returncode: Optional[int] = None):
        super().__init__(message, ErrorCode.PROBE_FAILED, diagnostics, returncode)


class MixExecutionError(EngineError):
    """Raised when the mix engine exits non-zero or produces no output."""
    def __init__(self, message: str, diagnostics: str = "", returncode: Optional[int] = None):
        super().__init__(message, ErrorCode.MIX_FAILED, diagnostics, returncode)
