"""
Custom exception hierarchy for the chunkwise preprocessing pipeline.

This module defines the exception hierarchy used across splitting, caching
and metadata extraction, with specific exceptions for each failure class.
"""

from typing import Any, Dict, Optional


class ChunkwiseError(Exception):
    """
    Base exception for all chunkwise errors.

    All custom exceptions in the pipeline inherit from this base class so
    callers can catch every pipeline-related error at once.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        cause: Optional underlying exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize chunkwise exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message

    def __repr__(self) -> str:
        """Return detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ChunkwiseError):
    """
    Error in pipeline configuration.

    Raised at construction time when configuration is invalid, missing, or
    inconsistent. Never recovered from.
    """
    pass


class MissingConfigurationError(ConfigurationError):
    """
    Required configuration value is missing.
    """
    pass


class InvalidConfigurationError(ConfigurationError):
    """
    Configuration value is invalid.

    Raised e.g. when chunk_overlap >= chunk_size or a count-like parameter
    (keywords, questions, nodes) is below 1.
    """
    pass


# =============================================================================
# Chunking Errors
# =============================================================================

class ChunkingError(ChunkwiseError):
    """
    Error during text chunking process.

    Raised when text cannot be properly split into chunks.
    """
    pass


class TokenizationError(ChunkingError):
    """
    Sentence tokenizer reached a malformed internal state.

    The recursive splitter recovers from this locally by treating the
    offending text as a single unit.
    """
    pass


# =============================================================================
# Cache Errors
# =============================================================================

class CacheError(ChunkwiseError):
    """
    Error with ingestion cache operations.
    """
    pass


class CacheUnavailableError(CacheError):
    """
    Cache backend could not be reached.

    Raised when the key-value backend fails or times out. Callers treat it
    as a miss for correctness but should still report it.
    """
    pass


# =============================================================================
# Extraction Errors
# =============================================================================

class ExtractionError(ChunkwiseError):
    """
    Error during metadata extraction.

    Raised when the language model collaborator fails while an extractor
    is generating metadata for nodes.
    """
    pass


# =============================================================================
# Pipeline Errors
# =============================================================================

class PipelineError(ChunkwiseError):
    """
    Error while running the ingestion pipeline.

    Raised for invalid pipeline input, e.g. neither nodes nor documents given.
    """
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def is_recoverable(exception: Exception) -> bool:
    """
    Tell whether the pipeline may degrade instead of failing on an error.

    Splitting and cache failures are recovered locally (fallback to coarser
    units, or treating the cache as a miss). Configuration failures never are.

    Args:
        exception: Exception instance

    Returns:
        True if the pipeline can continue past this error.
    """
    if isinstance(exception, ConfigurationError):
        return False
    return isinstance(exception, (ChunkingError, CacheError))


__all__ = [
    # Base exception
    "ChunkwiseError",
    # Configuration
    "ConfigurationError",
    "MissingConfigurationError",
    "InvalidConfigurationError",
    # Chunking
    "ChunkingError",
    "TokenizationError",
    # Cache
    "CacheError",
    "CacheUnavailableError",
    # Extraction
    "ExtractionError",
    # Pipeline
    "PipelineError",
    # Utilities
    "is_recoverable",
]
