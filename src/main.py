"""
Coriolis Demo - Main Application Entry Point
============================================
Headless runner for the rotating-Earth simulation.

Loads a scene from YAML, advances it for a number of ticks and optionally:
- Prints per-object status in the chosen view frame
- Records every tick and exports the run to CSV or JSON
- Saves trail and ground-track plots

Copyright (c) 2024 Coriolis Demo Team
"""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

# Add src to path for imports
SRC_DIR = Path(__file__).parent
PROJECT_ROOT = SRC_DIR.parent
sys.path.insert(0, str(SRC_DIR))

from simulation import AdaptiveIntegrator, RK4Integrator
from scene import Scene, SceneDefinition, SimulationSettings, TrajectoryRecorder


class CoriolisApplication:
    """
    Main application class.

    Builds the scene from configuration and drives it.
    """

    VERSION = "1.0.0"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize application.

        Args:
            config_path: Path to configuration YAML file
        """
        self.config_path = Path(config_path) if config_path else PROJECT_ROOT / "config" / "main_config.yaml"
        self.config = self._load_config()

        sim_config = self.config.get("simulation", {})
        self.settings = SimulationSettings(
            **{k: v for k, v in sim_config.items() if k in SimulationSettings.model_fields}
        )
        self.scene = Scene(self.settings, self._make_integrator(sim_config))
        self.scene.reset(SceneDefinition(objects=self.config.get("objects", [])))

        self.recorder: Optional[TrajectoryRecorder] = None
        self._stop_requested = False

        logger.info(f"Coriolis demo v{self.VERSION} initialized")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
                logger.info(f"Configuration loaded from {self.config_path}")
                return config
        else:
            logger.warning(f"Config file not found: {self.config_path}")
            return {}

    def _make_integrator(self, sim_config: Dict[str, Any]):
        name = sim_config.get("integrator", "rk4")
        if name == "adaptive":
            return AdaptiveIntegrator(self.settings.time_step)
        if name != "rk4":
            logger.warning(f"Unknown integrator '{name}', using rk4")
        return RK4Integrator(self.settings.time_step)

    def start_recording(self, name: str) -> str:
        """Record every following tick."""
        self.recorder = TrajectoryRecorder(self.scene)
        return self.recorder.start_recording(name, metadata={"config": str(self.config_path)})

    def run(self, ticks: int) -> int:
        """
        Advance the scene.

        Args:
            ticks: Number of ticks to run

        Returns:
            Number of ticks actually run
        """
        self.scene.running = True
        logger.info(f"Running {ticks} ticks of {self.scene.time_step}s")

        done = 0
        while done < ticks and not self._stop_requested:
            self.scene.tick()
            done += 1

        self.scene.running = False
        logger.info(f"Run complete at t={self.scene.t:.1f}s after {done} ticks")
        return done

    def export_data(self, filepath: str) -> Dict[str, Any]:
        """
        Stop recording and export the run.

        Args:
            filepath: Output file path, .csv or .json
        """
        if not self.recorder:
            raise RuntimeError("Recording not enabled")

        summary = self.recorder.stop_recording()
        suffix = Path(filepath).suffix.lower()
        if suffix == ".csv":
            self.recorder.export_to_csv(filepath)
        elif suffix == ".json":
            self.recorder.export_to_json(filepath)
        else:
            raise ValueError(f"Unknown format: {suffix}")
        return summary

    def save_plots(self, filepath: str) -> None:
        """Save the trail figure to ``filepath`` and the ground tracks beside it."""
        from visualization import TrajectoryPlotter

        plotter = TrajectoryPlotter()
        path = Path(filepath)

        trails = plotter.create_trail_figure(self.scene.objects, self.scene.frame_omega)
        plotter.save_figure(trails, str(path))

        tracks = plotter.create_ground_track_figure(self.scene.objects)
        plotter.save_figure(tracks, str(path.with_name(f"{path.stem}_ground{path.suffix}")))

    def request_shutdown(self) -> None:
        """Stop after the current tick."""
        self._stop_requested = True

    def print_status(self) -> None:
        """Print current scene status."""
        print("\n" + "=" * 60)
        print(f"  Coriolis demo v{self.VERSION}")
        print(f"  t = {self.scene.t:.1f} s, view frame = {self.scene.frame_rotation:.2f} x Earth rotation")
        print("=" * 60)
        for i, lines in enumerate(self.scene.status()):
            print(f"  Object {i}")
            for line in lines:
                print(f"    {line}")
        print("=" * 60 + "\n")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    logger.remove()  # Remove default handler

    level = "DEBUG" if verbose else "INFO"

    # Console handler with custom format
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True
    )

    # File handler for debug logs
    log_dir = PROJECT_ROOT / "logs"
    log_dir.mkdir(exist_ok=True)

    logger.add(
        log_dir / "coriolis_demo_{time}.log",
        rotation="10 MB",
        retention="7 days",
        level="DEBUG"
    )


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Coriolis demo - objects moving near the rotating Earth"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--ticks", "-n",
        type=int,
        default=None,
        help="Number of ticks to run (default: from config, else 100)"
    )
    parser.add_argument(
        "--time-step",
        type=float,
        default=None,
        help="Simulated seconds per tick"
    )
    parser.add_argument(
        "--frame-rotation",
        type=float,
        default=None,
        help="View frame rotation as a fraction of the Earth's (0..1)"
    )
    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Save trail and ground-track plots to this PNG path"
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        help="Record the run and export it to this .csv or .json path"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    # Create application
    app = CoriolisApplication(config_path=args.config)

    if args.time_step is not None:
        app.scene.time_step = args.time_step
    if args.frame_rotation is not None:
        app.scene.frame_rotation = min(max(args.frame_rotation, 0.0), 1.0)

    ticks = args.ticks if args.ticks is not None else app.config.get("simulation", {}).get("ticks", 100)

    # Setup signal handlers
    def signal_handler(sig, frame):
        logger.info("Received shutdown signal")
        app.request_shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if args.export:
        app.start_recording(app.config_path.stem)

    app.run(ticks)
    app.print_status()

    if args.export:
        summary = app.export_data(args.export)
        print("\n=== Run Summary ===")
        for key, value in summary.items():
            if isinstance(value, float):
                print(f"  {key}: {value:.6f}")
            else:
                print(f"  {key}: {value}")

    if args.plot:
        app.save_plots(args.plot)

    return 0


if __name__ == "__main__":
    sys.exit(main())
