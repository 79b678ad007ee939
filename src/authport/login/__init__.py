"""Login orchestration.

See Also:
    :class:`~authport.login.orchestrator.LoginOrchestrator`
    :data:`~authport.login.strategies.STRATEGIES`
"""

from authport.login.orchestrator import LoginOrchestrator, LoginResult, run_login
from authport.login.strategies import STRATEGIES, StrategyProfile

__all__ = [
    "LoginOrchestrator",
    "LoginResult",
    "STRATEGIES",
    "StrategyProfile",
    "run_login",
]
