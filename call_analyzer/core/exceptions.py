"""Error taxonomy for the call-framework analysis pipeline.

Only ``ValidationError`` ever reaches the caller of the batch entry point.
Everything else is contained per (call, framework) pair and turned into an
explicit error or incomplete analysis record.
"""

from __future__ import annotations

from typing import Any


class AnalysisError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, call_id: str = "", framework: str = ""):
        super().__init__(message)
        self.message = message
        self.call_id = call_id
        self.framework = framework


class ValidationError(AnalysisError):
    """Malformed top-level request (bad call ids or frameworks)."""


class FetchError(AnalysisError):
    """Call metadata or transcript could not be fetched from the data provider."""


class GenerationError(AnalysisError):
    """The generation call itself failed (network, provider or payload error)."""

    def __init__(self, message: str, status_code: int = 0, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class RecoveryExhausted(AnalysisError):
    """No recovery tier produced a schema-valid result; only the raw text is left."""

    def __init__(self, message: str, raw_text: str = "", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.raw_text = raw_text


class SchemaViolation(AnalysisError):
    """Parsed JSON does not match the analysis result contract."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []
