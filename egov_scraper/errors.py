"""Failure taxonomy, grouped by how far an abort reaches."""


class EgovScraperError(Exception):
    """Base class for all workflow failures."""


# --- client scope: the whole client run is abandoned and not marked done ---

class ClientAbort(EgovScraperError):
    pass


class AuthPageMalformed(ClientAbort):
    """The login page did not carry an anti-forgery token or session cookie."""


class AuthRejected(ClientAbort):
    """The credential POST did not return the second session cookie."""


class ListingFetchFailed(ClientAbort):
    """The filing listing page returned a non-200 response."""


class NoTableFound(ClientAbort):
    """The listing page has no results table."""


# --- filing scope: only the current filing is abandoned ---

class FilingAbort(EgovScraperError):
    pass


class DetailFetchFailed(FilingAbort):
    pass


class ReferenceNumberMissing(FilingAbort):
    pass


# --- archive / entry scope ---

class ArchiveUnreadable(EgovScraperError):
    """A downloaded attachment is not a readable zip container."""


class EncodingUndetectable(EgovScraperError):
    def __init__(self, filename: str, detected: str = ""):
        reason = f"unsupported encoding {detected}" if detected else "encoding not detected"
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.detected = detected
