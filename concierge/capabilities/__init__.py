from .registry import CapabilityDescriptor, CapabilityRegistry, CapabilitySuspend
from .specialists import SpecialistCapability, build_capability_registry

__all__ = [
    "CapabilityDescriptor",
    "CapabilityRegistry",
    "CapabilitySuspend",
    "SpecialistCapability",
    "build_capability_registry",
]
