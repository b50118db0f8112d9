from typing import Tuple


class OrchestrationError(Exception):
    """Base class for every failure surfaced by a concierge turn."""


class NoOutputError(OrchestrationError):
    """The model returned neither text nor a capability decision."""


class CapabilityError(OrchestrationError):
    """A selected capability could not produce usable output."""

    def __init__(self, capability_name: str, reason: str):
        super().__init__(f"Capability '{capability_name}' failed: {reason}")
        self.capability_name = capability_name
        self.reason = reason


class UnmatchedInterruptError(OrchestrationError):
    """
    A resume referenced a capability that is not suspended in the partial
    history, or picked one still waiting on an older interrupt.

    `already_run` names the capabilities the failed turn had invoked before
    the error; empty when it failed before running anything.
    """

    def __init__(
        self,
        capability_name: str,
        reason: str = "no matching suspended call in the partial history",
        already_run: Tuple[str, ...] = (),
    ):
        super().__init__(f"Cannot resume '{capability_name}': {reason}")
        self.capability_name = capability_name
        self.already_run = already_run


class AdapterTransportError(OrchestrationError):
    """The chat model call itself failed (network, quota, auth)."""
