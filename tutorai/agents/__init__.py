"""
Open-ended answer graders.

- HttpGradingClient: the hosted batch grading function
- LLMGradingAgent: LangChain-based batch grader

Both implement OpenEndedGrader. Note: answer checks for closed-form
questions live in tutorai/models (pure logic, not an agent)
"""

from .grading_agent import (
    GradingRequestItem,
    GradingResponse,
    GradingResult,
    LLMGradingAgent,
    OpenEndedGrader,
    extract_improvements,
    extract_weak_areas,
)
from .grading_client import HttpGradingClient, create_grader

__all__ = [
    # Grading contract
    "OpenEndedGrader",
    "GradingRequestItem",
    "GradingResult",
    "GradingResponse",
    "extract_weak_areas",
    "extract_improvements",
    # Backends
    "LLMGradingAgent",
    "HttpGradingClient",
    "create_grader",
]
