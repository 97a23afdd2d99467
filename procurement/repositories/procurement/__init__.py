from procurement.repositories.procurement.letter_repository import (
    ProcurementLetterRepository,
    ProcurementLogRepository,
)
from procurement.repositories.procurement.letter_store import LetterStore, Transition
from procurement.repositories.procurement.rule_repository import ProcurementRuleRepository

__all__ = [
    "LetterStore",
    "ProcurementLetterRepository",
    "ProcurementLogRepository",
    "ProcurementRuleRepository",
    "Transition",
]
