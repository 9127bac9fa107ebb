"""
TutorAI quiz scoring and learning-progress engine.

- agents: open-ended graders (hosted grading function, LLM)
- models: questions, answer evaluation, scoring, reconciliation
- utils: validation, persistence, progress analytics, guest limits
- orchestrator: one scoring-and-reconciliation cycle per submission
"""

__version__ = "0.1.0"
