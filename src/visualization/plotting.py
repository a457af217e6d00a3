"""
Trajectory Visualization
========================
Static matplotlib rendering of simulated objects.

This module provides:
- 3D trails around the planet in any rotating frame
- Latitude/longitude ground tracks
- Elevation time series

Figures are built without pyplot so they render on any backend,
including headless runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from matplotlib import rcParams, style
from matplotlib.figure import Figure
from numpy.typing import NDArray
from loguru import logger

from simulation import OMEGA, R_EQU, R_POL, SimObject, pos_to_lat_lon_elev


@dataclass
class PlotConfig:
    """Configuration for trajectory plots."""
    title: str = "Trajectories"
    figsize: Tuple[float, float] = (10, 8)
    line_width: float = 1.5
    marker_size: float = 6.0
    background_color: str = "#1a1a2e"
    planet_color: str = "#333366"
    planet_resolution: int = 24
    show_planet: bool = True
    grid: bool = True
    dpi: int = 150


def ground_track(obj: SimObject, max_t: Optional[float] = None) -> Tuple[NDArray, NDArray, NDArray]:
    """
    Geodetic track of an object, oldest first.

    Args:
        obj: Object to trace
        max_t: Only include points up to this time (s)

    Returns:
        Arrays of time (s), latitude (deg) and longitude (deg)
    """
    positions = [pos for pos, _ in obj.path if max_t is None or pos.t <= max_t]
    if max_t is None or obj.pos.t <= max_t:
        positions.append(obj.pos)

    t = np.array([p.t for p in positions])
    coords = np.array([pos_to_lat_lon_elev(p.to_omega(OMEGA).pos) for p in positions]).reshape(-1, 3)
    return t, coords[:, 0], coords[:, 1]


def _break_wraps(lon: NDArray, lat: NDArray) -> Tuple[NDArray, NDArray]:
    # Insert gaps where the track crosses the antimeridian
    jumps = np.where(np.abs(np.diff(lon)) > 180.0)[0] + 1
    return np.insert(lon, jumps, np.nan), np.insert(lat, jumps, np.nan)


class TrajectoryPlotter:
    """
    Renders objects to matplotlib figures.

    Usage:
        plotter = TrajectoryPlotter()
        fig = plotter.create_trail_figure(scene.objects, scene.frame_omega)
        plotter.save_figure(fig, "trails.png")
    """

    def __init__(self, config: Optional[PlotConfig] = None):
        """
        Initialize plotter.

        Args:
            config: Plot configuration
        """
        self.config = config or PlotConfig()

        style.use('dark_background')
        rcParams.update({
            'figure.facecolor': self.config.background_color,
            'axes.facecolor': '#0f0f1a',
            'axes.edgecolor': '#333366',
            'axes.labelcolor': '#ffffff',
            'text.color': '#ffffff',
            'xtick.color': '#aaaaaa',
            'ytick.color': '#aaaaaa',
            'grid.color': '#333366',
            'grid.linestyle': '--',
            'grid.alpha': 0.5,
            'font.size': 10,
            'axes.titlesize': 12,
            'axes.labelsize': 10,
        })

        logger.debug("TrajectoryPlotter initialized")

    def create_trail_figure(
        self,
        objects: Sequence[SimObject],
        omega: float = OMEGA,
        max_t: Optional[float] = None
    ) -> Figure:
        """
        3D trails in a frame rotating at ``omega``.

        The polar axis is drawn vertically.

        Args:
            objects: Objects to draw
            omega: View frame angular velocity (rad/s)
            max_t: Only draw history up to this time (s)

        Returns:
            Matplotlib Figure object
        """
        fig = Figure(figsize=self.config.figsize)
        ax = fig.add_subplot(projection='3d')

        if self.config.show_planet:
            self._draw_planet(ax)

        for obj in objects:
            points = obj.trajectory(omega, max_t) / 1e3
            if len(points) == 0:
                continue
            ax.plot(points[:, 0], points[:, 2], points[:, 1],
                    color=obj.color, linewidth=self.config.line_width)
            ax.scatter(points[-1, 0], points[-1, 2], points[-1, 1],
                       color=obj.color, s=self.config.marker_size ** 2)

        limit = R_EQU / 1e3 * 1.2
        ax.set_xlim(-limit, limit)
        ax.set_ylim(-limit, limit)
        ax.set_zlim(-limit, limit)
        ax.set_box_aspect((1, 1, 1))
        ax.set_xlabel("x (km)")
        ax.set_ylabel("z (km)")
        ax.set_zlabel("y, polar (km)")
        ax.set_title(f"{self.config.title} (ω = {omega / OMEGA:.2f} Ω)")

        return fig

    def _draw_planet(self, ax) -> None:
        n = self.config.planet_resolution
        u = np.linspace(-np.pi / 2, np.pi / 2, n)
        v = np.linspace(-np.pi, np.pi, 2 * n)
        uu, vv = np.meshgrid(u, v)

        x = R_EQU / 1e3 * np.cos(uu) * np.sin(vv)
        y = R_POL / 1e3 * np.sin(uu)
        z = R_EQU / 1e3 * np.cos(uu) * np.cos(vv)

        ax.plot_wireframe(x, z, y, color=self.config.planet_color, linewidth=0.4)

    def create_ground_track_figure(
        self,
        objects: Sequence[SimObject],
        max_t: Optional[float] = None
    ) -> Figure:
        """
        Latitude/longitude tracks over the planet's surface.

        Args:
            objects: Objects to draw
            max_t: Only draw history up to this time (s)

        Returns:
            Matplotlib Figure object
        """
        fig = Figure(figsize=self.config.figsize)
        ax = fig.add_subplot()

        for obj in objects:
            _, lat, lon = ground_track(obj, max_t)
            if len(lat) == 0:
                continue
            lon_line, lat_line = _break_wraps(lon, lat)
            ax.plot(lon_line, lat_line, color=obj.color, linewidth=self.config.line_width)
            ax.plot(lon[-1], lat[-1], 'o', color=obj.color, markersize=self.config.marker_size)

        ax.set_xlim(-180, 180)
        ax.set_ylim(-90, 90)
        ax.set_xlabel("Longitude (°)")
        ax.set_ylabel("Latitude (°)")
        ax.set_title(f"{self.config.title}: ground tracks")

        if self.config.grid:
            ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig

    def create_elevation_figure(self, objects: Sequence[SimObject]) -> Figure:
        """
        Elevation above the ellipsoid against time.

        Returns:
            Matplotlib Figure object
        """
        fig = Figure(figsize=self.config.figsize)
        ax = fig.add_subplot()

        for obj in objects:
            entries = [pos for pos, _ in obj.path] + [obj.pos]
            t = np.array([p.t for p in entries])
            elev = np.array([pos_to_lat_lon_elev(p.to_omega(OMEGA).pos)[2] for p in entries])
            ax.plot(t, elev / 1e3, color=obj.color, linewidth=self.config.line_width)

        ax.set_xlabel("Time (s)")
        ax.set_ylabel("Elevation (km)")
        ax.set_title(f"{self.config.title}: elevation")

        if self.config.grid:
            ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig

    def save_figure(self, fig: Figure, filepath: str, dpi: Optional[int] = None) -> None:
        """
        Save a figure to file.

        Args:
            fig: Figure to save
            filepath: Output file path
            dpi: Resolution (default: config dpi)
        """
        fig.savefig(
            filepath,
            dpi=dpi or self.config.dpi,
            bbox_inches='tight',
            facecolor=fig.get_facecolor()
        )
        logger.info(f"Plot saved to {filepath}")
