"""
Services module for VisionCast API.
"""

from .creation_service import CreationService
from .dashboard_service import DashboardService
from .generation_worker import GenerationWorker, get_generation_worker
from .generator import GenerationOutcome, SimulatedGenerator

__all__ = [
    "CreationService",
    "DashboardService",
    "GenerationWorker",
    "get_generation_worker",
    "GenerationOutcome",
    "SimulatedGenerator",
]
