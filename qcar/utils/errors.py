"""Error handling utilities for the claim reporting backend."""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum


class ErrorType(Enum):
    """Enumeration of error types in the claim reporting backend."""

    # Image Errors
    IMAGE_DECODE_FAILED = "IMAGE_DECODE_FAILED"

    # Report Errors
    PHOTO_EMBED_FAILED = "PHOTO_EMBED_FAILED"
    REPORT_RENDER_FAILED = "REPORT_RENDER_FAILED"

    # Storage Errors
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    INVALID_CLAIM_ID = "INVALID_CLAIM_ID"
    REPORT_NOT_FOUND = "REPORT_NOT_FOUND"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # General Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class ErrorContext:
    """
    Context information for errors in the claim reporting backend.

    Attributes:
        error_type: Type of error from ErrorType enum
        message: Human-readable error message
        recoverable: Whether the error can be recovered from
        fallback_action: Optional description of fallback action taken
        details: Optional additional error details
        original_exception: Optional original exception that caused this error
    """

    error_type: ErrorType
    message: str
    recoverable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error context to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error context
        """
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "fallback_action": self.fallback_action,
            "details": self.details or {},
            "original_exception": str(self.original_exception) if self.original_exception else None
        }


class ClaimsProcessingError(Exception):
    """
    Base exception for all claim reporting errors.

    Wraps errors with additional context so callers can decide whether
    to degrade gracefully or surface the failure.

    Attributes:
        context: ErrorContext with detailed error information
    """

    def __init__(self, context: ErrorContext):
        self.context = context
        super().__init__(context.message)

    def __str__(self) -> str:
        """String representation of the error."""
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    @property
    def recoverable(self) -> bool:
        return self.context.recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return self.context.to_dict()


class ImageProcessingError(ClaimsProcessingError):
    """Exception for image decode and analysis errors."""

    @classmethod
    def decode_failed(
        cls,
        image_name: str,
        error: Exception,
        fallback_action: Optional[str] = None
    ) -> "ImageProcessingError":
        """
        Create error for an image that could not be decoded.

        Args:
            image_name: Name or identifier of the image
            error: Original exception
            fallback_action: Optional fallback action

        Returns:
            ImageProcessingError instance
        """
        context = ErrorContext(
            error_type=ErrorType.IMAGE_DECODE_FAILED,
            message=f"Failed to decode image '{image_name}': {str(error)}",
            recoverable=True,
            fallback_action=fallback_action or "Accept photo without quality check",
            details={"image_name": image_name},
            original_exception=error
        )
        return cls(context)


class ReportGenerationError(ClaimsProcessingError):
    """Exception for claim report composition errors."""

    @classmethod
    def photo_embed_failed(
        cls,
        position: int,
        label: str,
        error: Exception,
        fallback_action: Optional[str] = None
    ) -> "ReportGenerationError":
        """
        Create error for a single photo that could not be embedded.

        Args:
            position: 1-based position of the photo in the report
            label: Guide label of the photo
            error: Original exception
            fallback_action: Optional fallback action

        Returns:
            ReportGenerationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.PHOTO_EMBED_FAILED,
            message=f"Failed to embed photo {position} ({label}): {str(error)}",
            recoverable=True,
            fallback_action=fallback_action or "Insert placeholder text",
            details={"position": position, "label": label},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def render_failed(
        cls,
        claim_id: str,
        error: Exception
    ) -> "ReportGenerationError":
        """
        Create error for a report that could not be rendered at all.

        Args:
            claim_id: Claim identifier of the report
            error: Original exception

        Returns:
            ReportGenerationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.REPORT_RENDER_FAILED,
            message=f"Failed to render report for claim '{claim_id}': {str(error)}",
            recoverable=False,
            details={"claim_id": claim_id},
            original_exception=error
        )
        return cls(context)


class ConfigurationError(ClaimsProcessingError):
    """Exception for missing or malformed configuration."""

    @classmethod
    def missing(cls, config_path: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_MISSING,
            message=f"Configuration file not found at '{config_path}'",
            recoverable=False,
            fallback_action="Use Config.default() or provide config.yaml",
            details={"config_path": config_path}
        )
        return cls(context)

    @classmethod
    def invalid(cls, key: str, error: Exception) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_INVALID,
            message=f"Invalid configuration value for '{key}': {str(error)}",
            recoverable=False,
            details={"key": key},
            original_exception=error
        )
        return cls(context)


class StorageError(ClaimsProcessingError):
    """Exception for local report/photo storage errors."""

    @classmethod
    def write_failed(cls, path: str, error: Exception) -> "StorageError":
        """
        Create error for a failed file write.

        Args:
            path: Destination path
            error: Original exception

        Returns:
            StorageError instance
        """
        context = ErrorContext(
            error_type=ErrorType.STORAGE_WRITE_FAILED,
            message=f"Failed to write '{path}': {str(error)}",
            recoverable=False,
            details={"path": path},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def invalid_claim_id(cls, claim_id: str) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.INVALID_CLAIM_ID,
            message=f"Invalid claim id '{claim_id}': only letters, digits, '-' and '_' are allowed",
            recoverable=False,
            details={"claim_id": claim_id}
        )
        return cls(context)

    @classmethod
    def report_not_found(cls, claim_id: str) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.REPORT_NOT_FOUND,
            message=f"No stored report for claim '{claim_id}'",
            recoverable=True,
            fallback_action="Regenerate the report",
            details={"claim_id": claim_id}
        )
        return cls(context)


def handle_embed_error(
    error: Exception,
    position: int,
    label: str,
    logger
) -> ReportGenerationError:
    """
    Log a per-photo embed failure and return the wrapped error.

    Unlike the decode path this does not raise: report composition
    continues with a placeholder in place of the photo.

    Args:
        error: Original exception from image conversion
        position: 1-based photo position
        label: Guide label of the photo
        logger: Logger instance for error logging

    Returns:
        ReportGenerationError describing the failure
    """
    if isinstance(error, ReportGenerationError):
        embed_error = error
    else:
        embed_error = ReportGenerationError.photo_embed_failed(
            position=position,
            label=label,
            error=error
        )

    logger.warning(f"Photo embed error: {embed_error}")
    return embed_error
