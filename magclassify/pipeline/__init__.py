"""Pipeline coordination and published state."""

from .coordinator import PipelineCoordinator
from .state import PublishedState, StatePublisher

__all__ = ["PipelineCoordinator", "PublishedState", "StatePublisher"]
