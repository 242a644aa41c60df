"""
Error Handling Classes

Exception hierarchy for the Drupal MCP server with structured error
information. Connectivity problems are never raised out of the mode
coordinator; these classes cover configuration, the REST client and
tool dispatch.
"""

import hashlib
import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"           # Logged, operation continues
    MEDIUM = "medium"     # Operation fails, server keeps serving
    HIGH = "high"         # Server cannot start or serve correctly


class ErrorCategory(str, Enum):
    """Categories of errors for better classification"""
    CONFIGURATION = "configuration"
    NETWORK = "network"
    BACKEND = "backend"
    CAPABILITY = "capability"
    VALIDATION = "validation"


class DrupalMCPError(Exception):
    """
    Base exception class for all Drupal MCP errors.

    Carries a category, severity, a short error code and free-form details
    so tool handlers can render a useful message to the MCP client.
    """

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.CONFIGURATION,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)

        self.message = message
        self.category = category
        self.severity = severity
        self.error_code = error_code or self._generate_error_code()
        self.original_error = original_error
        self.details = details or {}

    def _generate_error_code(self) -> str:
        content = f"{self.category.value}:{self.__class__.__name__}:{time.time()}"
        hash_obj = hashlib.md5(content.encode())
        return f"DM-{hash_obj.hexdigest()[:8].upper()}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "original_error": str(self.original_error) if self.original_error else None,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.error_code}, message='{self.message}')"


class ConfigurationError(DrupalMCPError):
    """Invalid or inconsistent settings."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.CONFIGURATION)
        kwargs.setdefault('severity', ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)


class BackendConnectionError(DrupalMCPError):
    """The Drupal site could not be reached."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.NETWORK)
        super().__init__(message, **kwargs)


class DrupalAPIError(DrupalMCPError):
    """The Drupal site answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        kwargs.setdefault('category', ErrorCategory.BACKEND)
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.details.setdefault("status_code", status_code)


class CapabilityUnavailableError(DrupalMCPError):
    """A tool was requested that the current mode cannot serve."""

    def __init__(self, tool_name: str, mode: str, reason: Optional[str] = None, **kwargs):
        message = f"Tool '{tool_name}' is not available in {mode} mode"
        if reason:
            message = f"{message}: {reason}"
        kwargs.setdefault('category', ErrorCategory.CAPABILITY)
        kwargs.setdefault('severity', ErrorSeverity.LOW)
        super().__init__(message, **kwargs)
        self.tool_name = tool_name
        self.mode = mode
