from .context import (
    AgentContext,
    CaseInfo,
    DialogueLevel,
    DialogueMessage,
    DialogueState,
    MessageRole,
)
from .response import AgentResponse, Evaluation

__all__ = [
    "AgentContext",
    "CaseInfo",
    "DialogueLevel",
    "DialogueMessage",
    "DialogueState",
    "MessageRole",
    "AgentResponse",
    "Evaluation",
]
