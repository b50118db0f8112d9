from .interrupts import InterruptController, find_resumable_suspension
from .orchestrator import MainOrchestrator

__all__ = ["InterruptController", "MainOrchestrator", "find_resumable_suspension"]
