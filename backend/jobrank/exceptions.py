"""
Exception hierarchy for the enrichment service.

    JobRankError
    ├── ConfigurationError   - missing credentials, raised before any work
    ├── GatewayError         - data store read/write/RPC failure
    ├── EmbeddingError       - embedding provider failure (whole batch)
    ├── CompletionError      - structured completion failure (one batch)
    ├── ScraperError         - profile scraping provider failure
    └── PipelineCancelled    - cooperative cancellation between batches
"""

from typing import Optional


class JobRankError(Exception):
    """Base class for all service errors."""


class ConfigurationError(JobRankError):
    """A required setting is missing."""


class GatewayError(JobRankError):
    """
    Data store request failed.

    Attributes:
        operation: HTTP verb or "RPC"
        target: Table or procedure name
        status_code: HTTP status (0 for transport errors)
        body: Response body text
    """

    def __init__(
        self,
        operation: str,
        target: str,
        status_code: int,
        body: str = "",
    ) -> None:
        self.operation = operation
        self.target = target
        self.status_code = status_code
        self.body = body
        super().__init__(f"Gateway {operation} {target} failed: {status_code} - {body}")


class EmbeddingError(JobRankError):
    """Embedding request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CompletionError(JobRankError):
    """Structured completion failed or returned unusable output."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ScraperError(JobRankError):
    """Profile scraping provider returned an error or an unexpected payload."""


class PipelineCancelled(JobRankError):
    """Raised at a checkpoint once the cancellation signal is set."""
