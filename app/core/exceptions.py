"""
Custom application exceptions.
"""

class ThisDayAppException(Exception):
    """Base exception for the ThisDay app."""
    pass


class ValidationError(ThisDayAppException):
    """Raised when validation fails."""
    pass


class InvalidCalendarDateError(ValidationError):
    """Raised when a year/month/day triple is not a real calendar date."""
    pass


class FutureEntryDateError(ValidationError):
    """Raised when a back-filled entry is dated after local today."""
    pass


class EntryNotFoundError(ThisDayAppException):
    """Raised when an entry is not found."""
    pass


class MalformedEntryError(ThisDayAppException):
    """Raised when a stored entry record cannot be mapped to the read model."""

    def __init__(self, message: str, entry_id: str = None):
        super().__init__(message)
        self.entry_id = entry_id


class MediaNotFoundError(ThisDayAppException):
    """Raised when a media asset is not found."""
    pass


class FileTooLargeError(ThisDayAppException):
    """Raised when uploaded file exceeds size limit."""
    pass


class MediaProviderError(ThisDayAppException):
    """Raised when the media server cannot be reached or answers with an error."""
    pass


class MediaUploadError(MediaProviderError):
    """Raised when uploading an asset to the media server fails."""
    pass


class InvalidRangeError(ThisDayAppException):
    """Raised when the media server cannot satisfy a requested byte range."""
    pass


class TokenVerificationError(ThisDayAppException):
    """Raised when a bearer token cannot be verified."""
    pass
