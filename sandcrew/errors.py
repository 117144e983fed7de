"""Error taxonomy shared by tools, synchronizer and the git engine."""

from typing import Optional


class SandCrewError(Exception):
    """Base class for all SandCrew errors."""


class ValidationError(SandCrewError):
    """Bad arguments: tool input, line ranges, repository names."""


class NotFoundError(SandCrewError):
    """A file or branch that was expected to exist does not."""


class ExternalServiceError(SandCrewError):
    """A completion, hosting or transport call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncError(SandCrewError):
    """Writing one path into the checkout failed."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Error syncing file {path}: {message}")
        self.path = path


class AuthError(SandCrewError):
    """A credential required for pushing is missing."""
