"""Enums for the pipeline CRM application.

Stage labels are stored verbatim in ``contacts.sales_stage``, so the values
here are the exact strings operators see in the tables.
"""

from enum import Enum, IntEnum


class Phase(IntEnum):
    """Sequential pipeline phases a contact moves through."""

    LEAD = 1
    PRESENTATION = 2
    CONVERSION = 3

    @property
    def slug(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return {
            Phase.LEAD: "Phase 1: Leads Stage",
            Phase.PRESENTATION: "Phase 2: Presentation",
            Phase.CONVERSION: "Phase 3: Conversion",
        }[self]


class SalesStage(str, Enum):
    """Every stage label known to the pipeline, including legacy spellings."""

    # Phase 1
    LEAD = "Lead"
    APPROACHED = "Approached"
    NOT_INTERESTED = "Not Interested"
    DEMO_STAGE = "Demo Stage"

    # Phase 2
    REQUEST_DEMO = "Request Demo"
    DEMO_CREATED = "Demo Created"
    DECISION_PENDING = "Decision Pending"
    APPROVED = "Approved"
    DEMO_APPROVED = "Demo Approved"
    UNDECIDED = "Undecided"
    REJECTED = "Rejected"

    # Phase 3
    NEGOTIATING = "Negotiating"
    DEPOSIT_PAID = "Deposit Paid"
    FULLY_PAID = "Fully Paid"
    CLOSED_WON = "Closed Won"
    IN_DEVELOPMENT = "In Development"
    COMPLETED = "Completed"
    CLOSED_LOST = "Closed Lost"


class SideEffectKind(str, Enum):
    """Operator input that must be captured before a stage change commits."""

    DEMO_REQUEST = "demo_request"
    NEGOTIATED_PRICE = "negotiated_price"
    REJECTION_REASON = "rejection_reason"
    PAYMENT = "payment"


class DuplicateField(str, Enum):
    """Identity-like contact fields checked for duplicates."""

    BUSINESS_NAME = "business_name"
    LINK = "link"
    EMAIL = "email"
    MOBILE_NUMBER = "mobile_number"


class ContactAction(str, Enum):
    CALL = "call"
    EMAIL = "email"


ARCHIVED_STAGES = frozenset(
    {
        SalesStage.NOT_INTERESTED.value,
        SalesStage.REJECTED.value,
        SalesStage.CLOSED_LOST.value,
        SalesStage.COMPLETED.value,
    }
)
