"""
Conversation and partial-history message types.

Every element of a partial history is one of a closed set of variants,
discriminated by `kind`, so the resume scan and the LangChain conversion can
match on the type instead of probing optional fields.
"""

from typing import Annotated, Any, Dict, List, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ConversationTurn(_Frozen):
    """One entry of the client-held conversation log."""

    role: Literal["user", "agent"]
    content: str


class UserTurn(_Frozen):
    kind: Literal["user"] = "user"
    content: str


class AgentTurn(_Frozen):
    kind: Literal["agent"] = "agent"
    content: str


class CapabilityRequest(_Frozen):
    """An invocation chosen by the model that ran to completion."""

    kind: Literal["capability_request"] = "capability_request"
    request_id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class CapabilitySuspension(_Frozen):
    """An invocation chosen by the model that stopped to wait for the user."""

    kind: Literal["capability_suspension"] = "capability_suspension"
    request_id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CapabilityResult(_Frozen):
    """The output answering a request, or the user's answer to a suspension."""

    kind: Literal["capability_result"] = "capability_result"
    request_id: str
    name: str
    output: str


Message = Annotated[
    Union[UserTurn, AgentTurn, CapabilityRequest, CapabilitySuspension, CapabilityResult],
    Field(discriminator="kind"),
]


def turns_to_messages(history: Sequence[ConversationTurn]) -> List[Message]:
    """Maps the client's turn log onto partial-history messages."""
    return [
        UserTurn(content=turn.content) if turn.role == "user" else AgentTurn(content=turn.content)
        for turn in history
    ]
