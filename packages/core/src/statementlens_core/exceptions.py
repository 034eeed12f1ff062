"""Custom exceptions for the StatementLens pipeline.

This module provides a hierarchy of exception classes for consistent error
handling across recovery, merging and the document lifecycle. All exceptions
inherit from StatementLensError, making it easy to catch all
application-specific errors.

Example:
    try:
        record = parse_extraction(raw_text)
    except RecoveryFailed as e:
        job = job.failed(e.message)
    except StatementLensError as e:
        logger.error("pipeline_failed", error=str(e))
"""

import re
from typing import Any, Optional


def redact_excerpt(text: str, limit: int = 200) -> str:
    """Return a short, log-safe excerpt of model output.

    Digit runs of four or more characters (account numbers, phone numbers)
    are masked so diagnostics never carry them verbatim.
    """
    excerpt = text[:limit]
    excerpt = re.sub(r"\d{4,}", lambda m: "#" * len(m.group(0)), excerpt)
    if len(text) > limit:
        excerpt += "..."
    return excerpt


class StatementLensError(Exception):
    """Base exception for all StatementLens errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class RecoveryFailed(StatementLensError):
    """Raised when no recovery strategy can produce a record from model text.

    Attributes:
        response_length: Length of the raw response that failed recovery.
        excerpt: Redacted excerpt of the response for diagnostics.

    Example:
        >>> raise RecoveryFailed.from_response("I could not read this page.")
        RecoveryFailed: No valid JSON found in response after trying all ...
    """

    def __init__(
        self,
        message: str,
        *,
        response_length: int = 0,
        excerpt: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize RecoveryFailed.

        Args:
            message: Human-readable error description.
            response_length: Length of the model response in characters.
            excerpt: Redacted excerpt of the response.
            details: Optional dictionary with additional context.
            recoverable: Whether re-running the model call may succeed.
                Defaults to True since model output is non-deterministic.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.response_length = response_length
        self.excerpt = excerpt

        self.details["response_length"] = response_length
        if excerpt is not None:
            self.details["excerpt"] = excerpt

    @classmethod
    def from_response(cls, response: str) -> "RecoveryFailed":
        """Build the terminal failure for an unrecoverable response."""
        return cls(
            "No valid JSON found in response after trying all parsing "
            f"strategies. Response length: {len(response)}",
            response_length=len(response),
            excerpt=redact_excerpt(response),
        )


class NotFound(StatementLensError):
    """Raised when a job or document id is unknown.

    Attributes:
        resource_id: The id that could not be resolved.
    """

    def __init__(
        self,
        message: str,
        *,
        resource_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.resource_id = resource_id
        if resource_id:
            self.details["resource_id"] = resource_id


class AlreadyProcessing(StatementLensError):
    """Raised when processing is requested for a job that is already running.

    Duplicate starts are rejected rather than queued, so at most one pipeline
    run is active per document id.
    """

    def __init__(
        self,
        message: str,
        *,
        job_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=True)
        self.job_id = job_id
        if job_id:
            self.details["job_id"] = job_id


class UpstreamFailure(StatementLensError):
    """Raised when a collaborator (rasterizer, model call) fails.

    Attributes:
        service: Name of the failing collaborator.
        operation: The operation being attempted.
        upstream_error: The underlying error message, if any.

    Example:
        >>> raise UpstreamFailure(
        ...     "Model call failed: 529 Overloaded",
        ...     service="anthropic",
        ...     operation="extract",
        ... )
        UpstreamFailure: Model call failed: 529 Overloaded
    """

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        upstream_error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize UpstreamFailure.

        Args:
            message: Human-readable error description.
            service: Identifier for the collaborator that failed.
            operation: The specific operation being attempted.
            upstream_error: The underlying error message from the collaborator.
            details: Optional dictionary with additional context.
            recoverable: Whether the operation can be retried. Defaults to True
                since most transport errors (rate limits, timeouts) are transient.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.service = service
        self.operation = operation
        self.upstream_error = upstream_error

        if service:
            self.details["service"] = service
        if operation:
            self.details["operation"] = operation
        if upstream_error:
            self.details["upstream_error"] = upstream_error


class UnsupportedMediaType(StatementLensError):
    """Raised when a document's media type cannot be processed."""

    def __init__(
        self,
        message: str,
        *,
        mime_type: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.mime_type = mime_type
        if mime_type:
            self.details["mime_type"] = mime_type


class UploadTooLarge(StatementLensError):
    """Raised when an upload exceeds the accepted size.

    Attributes:
        size_bytes: Declared size of the upload.
        limit_bytes: Largest size accepted.
    """

    def __init__(
        self,
        message: str,
        *,
        size_bytes: Optional[int] = None,
        limit_bytes: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        if size_bytes is not None:
            self.details["size_bytes"] = size_bytes
        if limit_bytes is not None:
            self.details["limit_bytes"] = limit_bytes


class ConfigurationError(StatementLensError):
    """Error raised when configuration is invalid or missing.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.config_key = config_key
        self.expected = expected

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected


__all__ = [
    "StatementLensError",
    "RecoveryFailed",
    "NotFound",
    "AlreadyProcessing",
    "UpstreamFailure",
    "UnsupportedMediaType",
    "UploadTooLarge",
    "ConfigurationError",
    "redact_excerpt",
]
