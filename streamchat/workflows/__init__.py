from .orchestrator import TurnOrchestrator
from .state import ExchangeState, TurnPhase

__all__ = ["TurnOrchestrator", "ExchangeState", "TurnPhase"]
