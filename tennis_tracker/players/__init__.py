from .tracker import PlayerAssociator

__all__ = ["PlayerAssociator"]
