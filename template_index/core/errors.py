"""
Error taxonomy shared by the indexing core and the HTTP layer
"""
import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Error kinds; values are the wire-level error codes"""
    INVALID_ID = "invalid_id"
    INVALID_PATH = "invalid_path"
    NOT_FOUND = "file_not_found"
    AMBIGUOUS = "ambiguous_filename"
    MISSING_IDENTIFIER = "missing_identifier"
    INDEX_BUILD_FAILED = "index_build_failed"
    REFRESH_FAILED = "refresh_failed"
    LIST_FAILED = "list_failed"


_STATUS_CODES = {
    ErrorKind.INVALID_ID: 400,
    ErrorKind.INVALID_PATH: 400,
    ErrorKind.NOT_FOUND: 400,
    ErrorKind.AMBIGUOUS: 400,
    ErrorKind.MISSING_IDENTIFIER: 400,
    ErrorKind.INDEX_BUILD_FAILED: 500,
    ErrorKind.REFRESH_FAILED: 500,
    ErrorKind.LIST_FAILED: 500,
}


class TemplateError(Exception):
    """
    Error raised by template resolution, indexing and listing.

    Carries a kind, a human readable message and an optional structured
    payload (for example the candidate paths of an ambiguous lookup).
    """

    def __init__(self, kind: ErrorKind, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.kind.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self):
        return f"<TemplateError {self.kind.value}: {self.message}>"
