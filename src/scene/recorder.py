"""
Trajectory Recorder
===================
Captures object snapshots every tick and exports them to CSV or JSON.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
from loguru import logger

from .models import ObjectSnapshot
from .scene import Scene


class TrajectoryRecorder:
    """
    Records a run with metadata.

    Provides structured recording with start/stop, metadata capture,
    and data export.
    """

    def __init__(self, scene: Scene, omega: Optional[float] = None):
        """
        Initialize recorder.

        Args:
            scene: Scene to record
            omega: Frame for recorded Cartesian state (default: the scene's view frame)
        """
        self.scene = scene
        self.omega = omega

        self._recording = False
        self._run_id: Optional[str] = None
        self._start_time: Optional[datetime] = None
        self._records: List[ObjectSnapshot] = []
        self._tick_count = 0
        self._metadata: Dict[str, Any] = {}

        logger.info("TrajectoryRecorder initialized")

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def records(self) -> List[ObjectSnapshot]:
        return list(self._records)

    def start_recording(
        self,
        name: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Start recording.

        Args:
            name: Name of the run
            description: Optional description
            metadata: Additional metadata

        Returns:
            Run ID
        """
        if self._recording:
            raise RuntimeError("Already recording")

        self._start_time = datetime.now()
        self._run_id = f"run_{self._start_time.strftime('%Y%m%d_%H%M%S')}"
        self._records = []
        self._tick_count = 0
        self._metadata = {
            "id": self._run_id,
            "name": name,
            "description": description,
            "start_time": self._start_time.isoformat(),
            "start_sim_time_s": self.scene.t,
            "time_step_s": self.scene.time_step,
            "frame_rotation": self.scene.frame_rotation,
            **(metadata or {})
        }

        self.scene.subscribe(self._on_tick)
        self._recording = True

        logger.info(f"Started recording run: {name}")
        return self._run_id

    def stop_recording(self) -> Dict[str, Any]:
        """
        Stop recording and return a summary.

        Returns:
            Run summary dictionary
        """
        if not self._recording:
            raise RuntimeError("Not recording")

        self._recording = False
        self.scene.unsubscribe(self._on_tick)

        elevations = [s.elevation_m for s in self._records]
        ticks = self._tick_count

        summary = {
            **self._metadata,
            "end_time": datetime.now().isoformat(),
            "end_sim_time_s": self.scene.t,
            "tick_count": ticks,
            "sample_count": len(self._records),
            "grounded_count": sum(1 for s in self._records if s.grounded),
            "min_elevation_m": float(np.min(elevations)) if elevations else None,
            "max_elevation_m": float(np.max(elevations)) if elevations else None,
        }

        logger.info(f"Stopped recording. Ticks: {ticks}, Samples: {len(self._records)}")
        return summary

    def _on_tick(self, scene: Scene) -> None:
        if self._recording:
            self._tick_count += 1
            self._records.extend(scene.snapshots(self.omega))

    def export_to_csv(self, filepath: str) -> None:
        """
        Export recorded snapshots to CSV.

        Args:
            filepath: Output file path
        """
        if not self._records:
            logger.warning("No data to export")
            return

        fieldnames = [
            "t",
            "index",
            "latitude_deg",
            "longitude_deg",
            "elevation_m",
            "x",
            "y",
            "z",
            "vx",
            "vy",
            "vz",
            "velocity_east",
            "velocity_north",
            "velocity_up",
            "grounded",
        ]

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for s in self._records:
                writer.writerow({
                    "t": s.t,
                    "index": s.index,
                    "latitude_deg": s.latitude_deg,
                    "longitude_deg": s.longitude_deg,
                    "elevation_m": s.elevation_m,
                    "x": s.position[0],
                    "y": s.position[1],
                    "z": s.position[2],
                    "vx": s.velocity[0],
                    "vy": s.velocity[1],
                    "vz": s.velocity[2],
                    "velocity_east": s.velocity_east,
                    "velocity_north": s.velocity_north,
                    "velocity_up": s.velocity_up,
                    "grounded": s.grounded,
                })

        logger.info(f"Exported {len(self._records)} samples to {filepath}")

    def export_to_json(self, filepath: str) -> None:
        """
        Export the run to JSON.

        Args:
            filepath: Output file path
        """
        data = {
            "metadata": self._metadata,
            "data": [s.to_dict() for s in self._records]
        }

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, default=str)

        logger.info(f"Exported run to {filepath}")
