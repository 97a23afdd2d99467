from procurement.services.procurement.approver_resolver import ApproverResolver
from procurement.services.procurement.procurement_service import ProcurementService
from procurement.services.procurement.routing_engine import LetterProgress, RoutingEngine
from procurement.services.procurement.rule_service import RuleService

__all__ = [
    "ApproverResolver",
    "LetterProgress",
    "ProcurementService",
    "RoutingEngine",
    "RuleService",
]
