"""
Visualization Package
======================
Static trajectory plots for simulated objects.
"""

from .plotting import (
    PlotConfig,
    TrajectoryPlotter,
    ground_track,
)

__all__ = [
    "PlotConfig",
    "TrajectoryPlotter",
    "ground_track",
]
