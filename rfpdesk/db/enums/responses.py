"""RFP response enums."""

from enum import Enum


class ResponseStatus(str, Enum):
    """
    Lifecycle of an RFP response.

    draft -> priced -> finalized -> sent (terminal).
    priced/finalized may be reopened to draft.
    """

    DRAFT = "draft"
    PRICED = "priced"
    FINALIZED = "finalized"
    SENT = "sent"

    @classmethod
    def priced_states(cls) -> frozenset["ResponseStatus"]:
        """States in which every derived pricing field must be present."""
        return frozenset({cls.PRICED, cls.FINALIZED, cls.SENT})


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    SAR = "SAR"


class DeliveryModel(str, Enum):
    ONSITE = "onsite"
    OFFSHORE = "offshore"
    HYBRID = "hybrid"
