"""Enhancement strategies and the method interceptor."""

from ..core.enhancement import EnhancementStrategy, Enhancer
from .agent import RuntimeAgentEnhancer, agent_installed, install_agent, uninstall_agent
from .interceptors import intercept, intercepted, register_interceptor
from .subclassing import SubclassingEnhancer


def enhancer_for(strategy: EnhancementStrategy) -> Enhancer:
    """Return the default enhancer implementing ``strategy``."""
    if strategy is EnhancementStrategy.RUNTIME_INSTRUMENTATION_AGENT:
        return RuntimeAgentEnhancer()
    return SubclassingEnhancer()


__all__ = [
    "Enhancer",
    "EnhancementStrategy",
    "RuntimeAgentEnhancer",
    "SubclassingEnhancer",
    "agent_installed",
    "enhancer_for",
    "install_agent",
    "intercept",
    "intercepted",
    "register_interceptor",
    "uninstall_agent",
]
