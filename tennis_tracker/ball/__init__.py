from .trajectory import TrajectoryTracker

__all__ = ["TrajectoryTracker"]
