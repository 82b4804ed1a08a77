"""Grid-based FastSLAM building blocks: poses, motion model, trajectory trees, log tools and scan preparation."""

__version__ = "0.1.0"

__all__ = ["gfsreader", "motion", "pose", "recformat", "scanprep", "tools", "tree"]