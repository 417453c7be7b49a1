#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Exception hierarchy for HealthRFP.

NotFound and ValidationError map onto 404 and 400 responses in the
dashboard API. PipelineError and ArchiveError are fatal to a run.
LLMUnavailableError is raised by the completion bridge and is always
absorbed by the pipeline stages, which fall back to a degraded result.
"""


class HealthRfpError(Exception):
    """Base class for all HealthRFP errors."""


class NotFound(HealthRfpError, LookupError):
    """A document, process, step result or knowledge entry does not resolve."""


class DocumentNotFound(NotFound):
    pass


class ProcessNotFound(NotFound):
    pass


class StepNotFound(NotFound):
    """The process exists but the requested step has no result yet."""


class ResponseNotArchived(NotFound):
    """The process exists but no response document was archived for it."""


class KnowledgeEntryNotFound(NotFound):
    pass


class ValidationError(HealthRfpError, ValueError):
    """Request data is missing a required field or carries a bad value."""


class ExtractionError(HealthRfpError):
    """Text could not be extracted from an uploaded object."""


class LLMUnavailableError(HealthRfpError, RuntimeError):
    """Raised when all LLM providers fail or the router is unavailable."""


class ArchiveError(HealthRfpError):
    """The final response document could not be written to object storage."""


class PipelineError(HealthRfpError):
    """A pipeline run aborted and its process was marked failed."""

    def __init__(self, message: str, process_id: str = ""):
        super().__init__(message)
        self.process_id = process_id
