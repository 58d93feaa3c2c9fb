"""Tests for session replay and export."""

import asyncio
import csv
import json

import pytest

from drivecoach.config import ReplayConfig
from drivecoach.models import SessionStatus, SessionType
from drivecoach.replay import ReplayClock, load_fixes, replay_session
from drivecoach.session.exporter import ExporterConfig, SessionExporter
from drivecoach.session.storage import InMemoryProgressStorage
from drivecoach.telemetry.fix import GeoFix


def _northbound(n: int, step_deg: float = 0.0005, dt: float = 5.0) -> list[GeoFix]:
    """Fixes heading north, ~55 m apart."""
    return [
        GeoFix(-23.5505 + step_deg * i, -46.6333, dt * i, speed_mps=11.0)
        for i in range(n)
    ]


def _write_csv(path, fixes):
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["latitude", "longitude", "timestamp", "speed"])
        for fix in fixes:
            writer.writerow([fix.latitude, fix.longitude, fix.timestamp,
                             "" if fix.speed_mps is None else fix.speed_mps])


class TestLoadFixes:
    """Test fix file loading."""

    def test_csv(self, tmp_path):
        """Test loading a CSV with an empty speed cell."""
        path = tmp_path / "drive.csv"
        fixes = _northbound(3)
        fixes[1] = GeoFix(fixes[1].latitude, fixes[1].longitude, fixes[1].timestamp)
        _write_csv(path, fixes)

        loaded = load_fixes(path)

        assert len(loaded) == 3
        assert loaded[0].latitude == pytest.approx(-23.5505)
        assert loaded[1].speed_mps is None
        assert loaded[2].speed_mps == 11.0

    def test_json(self, tmp_path):
        """Test loading a JSON list."""
        path = tmp_path / "drive.json"
        path.write_text(json.dumps([
            {"latitude": 1.0, "longitude": 2.0, "timestamp": 0},
            {"latitude": 1.001, "longitude": 2.0, "timestamp": 1, "speed": 3.5},
        ]))

        loaded = load_fixes(path)

        assert loaded[0].speed_mps is None
        assert loaded[1].speed_mps == 3.5


class TestReplayClock:
    """Test the replay clock."""

    def test_never_runs_backwards(self):
        """Test out-of-order timestamps do not rewind time."""
        clock = ReplayClock(10.0)

        clock.advance_to(20.0)
        clock.advance_to(15.0)

        assert clock.now() == 20.0


class TestReplaySession:
    """Test full replays."""

    def test_practice_replay(self):
        """Test a practice replay uses fix timestamps for duration."""
        fixes = _northbound(25, dt=5.0)

        engine, result = asyncio.run(replay_session(fixes))

        assert result.finished
        assert result.session.duration_seconds == 120
        assert result.session.final_score == 100
        assert result.session.xp_earned == 20 + 50 + 50
        assert len(result.session.route) == 25
        assert engine.status == SessionStatus.FINISHED

    def test_simulation_replay_finishes_on_last_checkpoint(self):
        """Test checkpoints trigger by distance and the course ends the session."""
        fixes = _northbound(20)  # ~1 km, past the 400 m checkpoint
        config = ReplayConfig(session_type=SessionType.SIMULATION, missed_checkpoints=(1, 3))
        progress = InMemoryProgressStorage()

        engine, result = asyncio.run(replay_session(fixes, config, progress_storage=progress))

        assert result.finished
        assert result.session.final_score == 90
        assert result.session.serious_error_count == 2
        assert len(result.session.route) < len(fixes)
        assert progress.filter("local")[0].total_sessions == 1

    def test_short_simulation_stops_at_end(self):
        """Test a replay ending before the course is done still finishes."""
        fixes = _northbound(3)  # ~110 m
        config = ReplayConfig(session_type="simulation", missed_checkpoints=[0])

        engine, result = asyncio.run(replay_session(fixes, config))

        assert result.finished
        assert result.session.final_score == 95
        assert not engine.course.is_complete


class TestSessionExporter:
    """Test session export."""

    def test_export_json_and_csv(self, tmp_path):
        """Test exported files contain the session and route."""
        _, result = asyncio.run(replay_session(_northbound(4)))
        exporter = SessionExporter(ExporterConfig(output_dir=str(tmp_path / "out")))

        json_path = exporter.export_json(result.session)
        csv_path = exporter.export_route_csv(result.session)

        record = json.loads(json_path.read_text())
        assert record["final_score"] == 100
        assert record["status"] == "finished"
        assert len(record["route_data"]) == 4

        with open(csv_path, newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 4
        assert float(rows[0]["distance_km"]) == 0.0
        assert float(rows[-1]["distance_km"]) == pytest.approx(result.session.distance_km, abs=1e-3)

    def test_export_without_route(self, tmp_path):
        """Test the route can be left out of the JSON record."""
        _, result = asyncio.run(replay_session(_northbound(2)))
        exporter = SessionExporter(ExporterConfig(output_dir=str(tmp_path), include_route=False))

        record = json.loads(exporter.export_json(result.session, "s.json").read_text())

        assert "route_data" not in record
