"""Exception taxonomy shared by the gateways, controllers and the bulk pipeline."""
from typing import Optional


class TiendaError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(TiendaError):
    """Local form validation failed; nothing was sent to the network."""


# --- remote stores ---------------------------------------------------------
class RemoteError(TiendaError):
    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RemoteWriteError(RemoteError):
    """A create/update/delete was rejected or the store was unreachable."""


class RemoteReadError(RemoteError):
    """A one-shot read could not be completed."""


class SubscriptionError(RemoteError):
    """The live delivery channel broke."""


# --- auth ------------------------------------------------------------------
class AuthError(TiendaError):
    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


# --- bulk import -----------------------------------------------------------
class ImportHalted(TiendaError):
    """The import pipeline stopped before writing anything."""


class ImportCancelled(ImportHalted):
    """The user dismissed the file picker. Not a failure."""


class ExtractionError(ImportHalted):
    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EmptyImportError(ImportHalted):
    """The extraction service returned no rows."""


__all__ = [
    'TiendaError', 'ValidationError',
    'RemoteError', 'RemoteWriteError', 'RemoteReadError', 'SubscriptionError',
    'AuthError',
    'ImportHalted', 'ImportCancelled', 'ExtractionError', 'EmptyImportError',
]
