"""Business rule extraction."""

from .service import RuleExtractor, RulesConfig, RulesInputs, RulesResult, RulesService, extract_rules
from .state_machines import StateMachineInferer

__all__ = [
    "RuleExtractor",
    "RulesConfig",
    "RulesInputs",
    "RulesResult",
    "RulesService",
    "StateMachineInferer",
    "extract_rules",
]
