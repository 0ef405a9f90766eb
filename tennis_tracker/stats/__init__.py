from .movement   import HeatmapGrid, MovementBuffer, court_coverage, speed_kmh
from .shots      import ShotClassifier, SHOT_RULES
from .aggregator import AnalysisAggregator

__all__ = [
    "HeatmapGrid", "MovementBuffer", "court_coverage", "speed_kmh",
    "ShotClassifier", "SHOT_RULES",
    "AnalysisAggregator",
]
