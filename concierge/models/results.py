from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from concierge.models.messages import ConversationTurn, Message


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ResumeRequest(_Payload):
    """The user's answer to a pending interrupt."""

    capability_name: str
    user_response: str


class PendingInterrupt(_Payload):
    """
    A suspended capability call, handed to the caller to hold until the
    next turn. `partial_history` ends with the suspending call.
    """

    capability_name: str
    capability_input: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    partial_history: List[Message] = Field(default_factory=list)


class Completed(_Payload):
    kind: Literal["completed"] = "completed"
    text: str
    partial_history: List[Message] = Field(default_factory=list)


class Suspended(_Payload):
    kind: Literal["suspended"] = "suspended"
    interrupt: PendingInterrupt


OrchestrationResult = Annotated[Union[Completed, Suspended], Field(discriminator="kind")]


# --- Wire format of the single Orchestrate operation ---


class OrchestrateRequest(_Payload):
    utterance: str
    history: List[ConversationTurn] = Field(default_factory=list)
    resume: Optional[ResumeRequest] = None
    partial_history: Optional[List[Message]] = None

    @field_validator("utterance")
    @classmethod
    def check_utterance(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("utterance must not be empty")
        return value


class InterruptPayload(_Payload):
    capability_name: str
    capability_input: Any = None
    metadata: Optional[Any] = None


class OrchestrateResponse(_Payload):
    text: Optional[str] = None
    interrupt: Optional[InterruptPayload] = None
    partial_history: Optional[List[Message]] = None

    @classmethod
    def from_result(cls, result: Union[Completed, Suspended]) -> "OrchestrateResponse":
        if isinstance(result, Suspended):
            pending = result.interrupt
            return cls(
                interrupt=InterruptPayload(
                    capability_name=pending.capability_name,
                    capability_input=pending.capability_input,
                    metadata=pending.metadata or None,
                ),
                partial_history=pending.partial_history,
            )
        return cls(text=result.text, partial_history=result.partial_history)
