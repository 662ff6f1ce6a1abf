"""Document-related enums."""

from enum import Enum


class DocumentStatus(str, Enum):
    """
    Processing status of an uploaded RFP document.

    uploaded -> processing -> processed | failed
    """

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"

    @classmethod
    def terminal(cls) -> frozenset["DocumentStatus"]:
        return frozenset({cls.PROCESSED, cls.FAILED})
