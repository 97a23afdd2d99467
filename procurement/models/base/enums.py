"""
Database enums shared by the models and the API schemas.
"""

import enum


class LetterStatus(str, enum.Enum):
    """Lifecycle state of a procurement letter."""
    PENDING_REVIEW = "PENDING_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    NEEDS_REVISION = "NEEDS_REVISION"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_awaiting_decision(self) -> bool:
        return self in (LetterStatus.PENDING_REVIEW, LetterStatus.PENDING_APPROVAL)


class StepType(str, enum.Enum):
    """Kind of action a rule step expects from its role."""
    CREATE = "CREATE"
    REVIEW = "REVIEW"
    APPROVE = "APPROVE"


class LogAction(str, enum.Enum):
    """Audit log action recorded for every letter transition."""
    CREATED = "CREATED"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    SUBMITTED = "SUBMITTED"


class Decision(str, enum.Enum):
    """Decision an approver can take on a pending letter."""
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_REVISION = "REQUEST_REVISION"
