"""Per-run session logs: conversation transcript, engine events and diffs."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from sandcrew.constants import STATE_DIR


class SessionLogger:
    """Writes the logs of one SandCrew run under .sandcrew/runs/<run_id>/."""

    def __init__(self, project_root: Path, run_id: Optional[str] = None):
        """Initialize session logger.

        Args:
            project_root: Project root directory
            run_id: Optional run ID (generated if not provided)
        """
        self.project_root = project_root
        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")

        self.log_dir = project_root / STATE_DIR / "runs" / self.run_id
        self.transcript_path = self.log_dir / "transcript.ndjson"
        self.events_path = self.log_dir / "events.ndjson"
        self.diffs_dir = self.log_dir / "diffs"

        self.diffs_dir.mkdir(parents=True, exist_ok=True)

    def log_message(self, message: Any) -> None:
        """Append a conversation message to the transcript.

        Args:
            message: Any of the conversation message models
        """
        self._append(self.transcript_path, message.model_dump(mode="json"))

    def log_event(self, event: str, **fields: Any) -> None:
        """Append an engine event (sync, commit, push, tool dispatch, ...).

        Args:
            event: Event name
            **fields: Event details; values that are not JSON types are stringified
        """
        self._append(self.events_path, {"event": event, **fields})

    def save_diff(self, name: str, diff_content: str) -> Path:
        """Write a diff next to the run logs, replacing any earlier one of the same name.

        Returns:
            Path of the written file
        """
        diff_path = self.diffs_dir / f"{name}.diff"
        diff_path.write_text(diff_content, encoding="utf-8")
        return diff_path

    def get_log_path(self) -> str:
        return str(self.log_dir.absolute())

    def _append(self, path: Path, entry: dict) -> None:
        line = json.dumps({"ts": datetime.now().isoformat(), **entry}, default=str)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
