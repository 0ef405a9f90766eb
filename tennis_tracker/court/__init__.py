from .calibrator import CourtCalibrator

__all__ = ["CourtCalibrator"]
