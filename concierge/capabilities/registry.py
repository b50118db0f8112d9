from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Type, Union

from pydantic import BaseModel, Field, ValidationError

from concierge.exceptions import CapabilityError
from concierge.models.capability_models import SpecialistInput
from concierge.models.messages import ConversationTurn

logger = logging.getLogger(__name__)


class CapabilitySuspend(BaseModel):
    """
    Returned by a capability instead of text when it cannot finish without
    more input from the user. `metadata` travels untouched to the caller.
    """

    metadata: Dict[str, Any] = Field(default_factory=dict)


CapabilityOutcome = Union[str, CapabilitySuspend]
CapabilityFn = Callable[[BaseModel, Sequence[ConversationTurn]], CapabilityOutcome]


@dataclass(frozen=True)
class CapabilityDescriptor:
    """
    A named specialist operation.

    `description` is all the model sees when deciding whether the capability
    applies, so descriptions within one registry should not overlap.
    """

    name: str
    description: str
    invoke: CapabilityFn = field(compare=False)
    input_schema: Type[BaseModel] = SpecialistInput

    def declaration(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.model_json_schema(),
        }


class CapabilityRegistry:
    """A fixed catalog of capabilities, keyed by name."""

    def __init__(self, descriptors: Iterable[CapabilityDescriptor]):
        catalog: Dict[str, CapabilityDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in catalog:
                raise ValueError(f"Duplicate capability name '{descriptor.name}'.")
            catalog[descriptor.name] = descriptor
        self._catalog: Mapping[str, CapabilityDescriptor] = catalog
        logger.info(f"Capability registry ready with: {list(catalog)}")

    def __contains__(self, name: str) -> bool:
        return name in self._catalog

    def __len__(self) -> int:
        return len(self._catalog)

    def list(self) -> List[CapabilityDescriptor]:
        return list(self._catalog.values())

    def declarations(self) -> List[Dict[str, Any]]:
        return [descriptor.declaration() for descriptor in self._catalog.values()]

    def get(self, name: str) -> CapabilityDescriptor:
        try:
            return self._catalog[name]
        except KeyError:
            raise CapabilityError(name, f"unknown capability, available: {list(self._catalog)}") from None

    def invoke(
        self,
        name: str,
        input: Mapping[str, Any],
        history: Sequence[ConversationTurn],
    ) -> CapabilityOutcome:
        """
        Validates `input` against the capability's schema and runs it.

        Returns:
            The capability's text, or a CapabilitySuspend marker.

        Raises:
            CapabilityError: Unknown name, invalid input, or no usable output.
        """
        descriptor = self.get(name)
        try:
            arguments = descriptor.input_schema.model_validate(dict(input))
        except ValidationError as e:
            raise CapabilityError(name, f"invalid input: {e}") from e

        outcome = descriptor.invoke(arguments, history)

        if isinstance(outcome, CapabilitySuspend):
            logger.info(f"Capability '{name}' suspended, waiting for the user.")
            return outcome
        if not isinstance(outcome, str) or not outcome.strip():
            raise CapabilityError(name, "no output")
        return outcome
