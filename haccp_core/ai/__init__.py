# =============================================================================
# haccp_core/ai/__init__.py
# AI assistant for food-safety advice
# =============================================================================

from .assistant import (
    HaccpAssistant,
    get_assistant,
    compliance_prompt,
    question_prompt,
    NO_ANALYSIS,
    ANALYSIS_UNAVAILABLE,
    NO_ANSWER,
    ASSISTANT_OFFLINE,
)

__all__ = [
    "HaccpAssistant",
    "get_assistant",
    "compliance_prompt",
    "question_prompt",
    "NO_ANALYSIS",
    "ANALYSIS_UNAVAILABLE",
    "NO_ANSWER",
    "ASSISTANT_OFFLINE",
]
