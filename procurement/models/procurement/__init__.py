from procurement.models.procurement.letter import ProcurementLetter, ProcurementLog
from procurement.models.procurement.rule import ProcurementRule, ProcurementStep

__all__ = [
    "ProcurementRule",
    "ProcurementStep",
    "ProcurementLetter",
    "ProcurementLog",
]
