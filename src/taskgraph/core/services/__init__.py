"""
Service layer for taskgraph.

Services are stateless orchestrators that compose domain operations into clean
API surfaces. Any interface (CLI, agent layer, host application) calls service
methods instead of reaching into core packages directly.

Design principles:
- Every user-facing action maps to a service method.
- Methods accept typed inputs, return typed outputs, raise typed exceptions.
- No Rich, no sys.exit, no print statements; presentation is the caller's job.
- Services are created via factory methods that accept configuration.

Modules:
    dependencies: DependencyService for edge management and graph analyses.
    agent_format: AgentFormatter renders analysis results as markdown for LLMs.
"""

from taskgraph.core.services.agent_format import AgentFormatter
from taskgraph.core.services.dependencies import DependencyService

__all__ = [
    "AgentFormatter",
    "DependencyService",
]
