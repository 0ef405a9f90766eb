from .loader import FrameLoader

__all__ = ["FrameLoader"]
