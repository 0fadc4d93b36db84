from typing import List, Optional


class LetmeinError(Exception):
    """Base class for every error the client reports to the user."""


# --- input validation ---

class ProfileValidationError(LetmeinError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class MasterSecretError(LetmeinError, ValueError):
    pass


class DeletedProfileError(LetmeinError):
    pass


# --- identity ---

class ProfileMatchError(LetmeinError):
    def __init__(self, message: str, matches: Optional[List] = None):
        super().__init__(message)
        self.matches = matches or []


# --- secret verification ---

class VerificationError(LetmeinError):
    pass


# --- I/O and transport ---

class DocumentError(LetmeinError):
    pass


class DocumentNotFoundError(DocumentError):
    pass


class DocumentExistsError(DocumentError):
    pass


class SyncError(LetmeinError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransportError(SyncError):
    pass


# Raised only when scrypt rejects parameters that were already validated.
class KeyDerivationError(LetmeinError):
    pass
