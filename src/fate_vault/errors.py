"""Exceptions raised by the transport and the editing session."""
from typing import Optional


class FateVaultError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(FateVaultError):
    """An HTTP request to the backend or the storage service failed.

    ``status`` is the HTTP status code when a response was received and
    ``server_message`` the ``error`` text of a JSON error body, if any.
    """

    def __init__(self, message: str, status: Optional[int] = None, server_message: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.server_message = server_message

    def detail(self) -> str:
        return self.server_message or str(self)


class LoadError(FateVaultError):
    """A character could not be loaded."""


class CharacterNotFound(LoadError):
    pass


class TemplateNotFound(FateVaultError):
    """Creation mode found no template to start from."""


class SaveError(FateVaultError):
    pass


class UploadValidationError(FateVaultError):
    """The image was rejected before any network call."""


class UploadError(FateVaultError):
    pass
