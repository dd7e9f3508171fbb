from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from enum import Enum, IntEnum


class DialogueLevel(IntEnum):
    """Socratic questioning depth, from plain observation to value judgement."""
    OBSERVATION = 1
    FACTS = 2
    ANALYSIS = 3
    APPLICATION = 4
    VALUES = 5


class MessageRole(str, Enum):
    """Participants in a tutoring dialogue."""
    STUDENT = "student"
    AGENT = "agent"
    SYSTEM = "system"


class DialogueMessage(BaseModel):
    """A single turn of the tutoring dialogue."""
    role: MessageRole
    content: str
    level: Optional[DialogueLevel] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CaseInfo(BaseModel):
    """
    Teaching case the dialogue is built around.

    Only ``id`` and ``type`` take part in cache keys; the remaining fields
    feed the similarity calculator's context score.
    """
    id: str = Field(..., description="Case identifier")
    title: str = Field(default="", description="Short case title")
    description: str = Field(default="", description="Case summary")
    type: Optional[str] = Field(None, description="Case category, e.g. 'contract'")
    facts: List[str] = Field(default_factory=list, description="Established facts")
    laws: List[str] = Field(default_factory=list, description="Relevant provisions")
    disputes: List[str] = Field(default_factory=list, description="Points in dispute")


class DialogueState(BaseModel):
    """Where the student currently is in the dialogue."""
    level: DialogueLevel = Field(default=DialogueLevel.OBSERVATION, description="Current dialogue level")
    history: List[DialogueMessage] = Field(default_factory=list, description="Previous turns")


class AgentContext(BaseModel):
    """Everything the agent knows about the current tutoring session."""
    case: Optional[CaseInfo] = Field(None, description="Case under discussion")
    dialogue: DialogueState = Field(default_factory=DialogueState)
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form session metadata")

    @property
    def level(self) -> DialogueLevel:
        return self.dialogue.level

    @property
    def case_type(self) -> Optional[str]:
        return self.case.type if self.case else None

    @property
    def case_id(self) -> Optional[str]:
        return self.case.id if self.case else None
