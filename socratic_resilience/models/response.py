from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from .context import DialogueLevel


class Evaluation(BaseModel):
    """Agent's assessment of the student's answer."""
    understanding: int = Field(default=50, ge=0, le=100, description="Understanding score (0-100)")
    can_progress: bool = Field(default=False, description="Whether the student may move to the next level")
    weak_points: List[str] = Field(default_factory=list, description="Concepts the student struggled with")


class AgentResponse(BaseModel):
    """
    Response produced by the tutoring agent.

    ``cached`` marks responses served from the similarity cache and
    ``fallback`` marks degraded responses produced by the fallback handler.
    """
    content: str = Field(..., description="Text shown to the student")
    suggested_level: DialogueLevel = Field(default=DialogueLevel.OBSERVATION)
    concepts: List[str] = Field(default_factory=list, description="Concepts touched by the response")
    evaluation: Optional[Evaluation] = None
    cached: bool = False
    fallback: bool = False
    response_time_ms: Optional[float] = Field(None, description="Time taken to produce the response")
    metadata: Dict[str, Any] = Field(default_factory=dict)
