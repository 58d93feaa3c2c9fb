"""
Session exporter - Write finished sessions to files.

Provides:
- JSON export of the session record
- CSV export of the route polyline
"""

from dataclasses import dataclass
from pathlib import Path
import csv
import json

import numpy as np

from drivecoach.models import Session
from drivecoach.telemetry.geo import leg_distances_km


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


@dataclass
class ExporterConfig:
    """Exporter configuration."""
    output_dir: str = "./session_data"
    include_route: bool = True


class SessionExporter:
    """Export session data for analysis in external tools."""

    def __init__(self, config: ExporterConfig | None = None):
        """Initialize exporter.

        Args:
            config: Exporter configuration
        """
        self.config = config or ExporterConfig()

        self._output_path = Path(self.config.output_dir)
        self._output_path.mkdir(parents=True, exist_ok=True)

    def export_json(self, session: Session, filename: str | None = None) -> Path:
        """Export the session record to JSON.

        Args:
            session: Session to export
            filename: Output filename (defaults to session_<id>.json)

        Returns:
            Path to exported file
        """
        output_file = self._output_path / (filename or f"session_{session.id}.json")

        record = session.to_record()
        if not self.config.include_route:
            record.pop("route_data")

        with open(output_file, 'w') as f:
            json.dump(record, f, indent=2, cls=NumpyEncoder)

        return output_file

    def export_route_csv(self, session: Session, filename: str | None = None) -> Path:
        """Export the route with per-point cumulative distance.

        Args:
            session: Session to export
            filename: Output filename (defaults to route_<id>.csv)

        Returns:
            Path to exported file
        """
        output_file = self._output_path / (filename or f"route_{session.id}.csv")

        legs = leg_distances_km(session.route)
        cumulative = np.concatenate(([0.0], np.cumsum(legs))) if len(session.route) else []

        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(["lat", "lng", "timestamp", "distance_km"])
            for point, distance in zip(session.route, cumulative):
                writer.writerow([
                    f"{point.lat:.7f}",
                    f"{point.lng:.7f}",
                    f"{point.timestamp:.3f}",
                    f"{distance:.4f}",
                ])

        return output_file
