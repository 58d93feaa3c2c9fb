"""
Replay Configuration

Configuration settings for replaying recorded fixes through a session.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from drivecoach.models import SessionType


@dataclass
class ReplayConfig:
    """Configuration for a session replay run."""

    # Input
    input_path: Path = Path("fixes.csv")

    # Session
    session_type: SessionType = SessionType.PRACTICE
    user_key: str = "local"
    missed_checkpoints: tuple = ()  # Checkpoint indices to fail in simulation mode

    # Export
    export_dir: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Validate and normalize configuration."""
        if isinstance(self.input_path, str):
            self.input_path = Path(self.input_path)
        if self.export_dir and isinstance(self.export_dir, str):
            self.export_dir = Path(self.export_dir)
        if self.log_file and isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if isinstance(self.session_type, str):
            self.session_type = SessionType(self.session_type)
        self.log_level = self.log_level.upper()
        self.missed_checkpoints = tuple(self.missed_checkpoints)
