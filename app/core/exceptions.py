"""Error taxonomy shared by the core services and the HTTP layer."""

from typing import Dict, List, Optional


class ReportServiceError(Exception):
    """Base class for expected, caller-facing failures."""


class NotFoundError(ReportServiceError):
    """A record, or the file it points to, does not exist."""


class ValidationError(ReportServiceError):
    """Request input is missing or malformed."""


class TemplateNotFoundError(ReportServiceError):
    """The bundled template file is absent."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Template file not found: {path}")


class TemplateError(ReportServiceError):
    """Template could not be parsed or rendered.

    ``details`` is a list of ``{"type", "tag", "issue"}`` dictionaries, one per
    problem found.
    """

    def __init__(self, message: str, details: Optional[List[Dict[str, Optional[str]]]] = None):
        super().__init__(message)
        self.details = details or []
