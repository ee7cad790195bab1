"""
File-based loop state.

Jobs, the implementation plan, the completion marker and the prompt files all
live at well-known paths relative to the working directory. Every write goes
to a temporary file in the same directory and is renamed into place, so a
reader never sees a half-written file.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...errors import PersistenceError, PromptNotFoundError

logger = logging.getLogger(__name__)

JOBS_PATH = Path("docs") / "requirements" / "jobs-to-be-done.json"
PLAN_PATH = Path("docs") / "requirements" / "IMPLEMENTATION_PLAN.md"
DONE_MARKER = "overseer.loop.done"


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Job(BaseModel):
    """One job from jobs-to-be-done.json; camelCase on disk, unknown keys kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    requirement_code: str = Field(default="", alias="requirementCode")
    description: str = ""
    status: JobStatus = JobStatus.PENDING
    partial_implementation: Optional[str] = Field(default=None, alias="partialImplementation")
    priority: int = 0

    @property
    def is_done(self) -> bool:
        return self.status == JobStatus.DONE


def atomic_write_text(path: Path, content: str) -> None:
    """Write content to path via a temp file and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class LoopStateStore:
    """Reads and writes the loop's persisted state under one directory."""

    def __init__(self, working_directory: Path):
        self.working_directory = Path(working_directory)
        # Shape of the jobs file as last loaded, reused by save_jobs.
        self._envelope: Optional[Dict[str, Any]] = None
        self._file_order: Dict[str, int] = {}

    @property
    def jobs_path(self) -> Path:
        return self.working_directory / JOBS_PATH

    @property
    def plan_path(self) -> Path:
        return self.working_directory / PLAN_PATH

    @property
    def marker_path(self) -> Path:
        return self.working_directory / DONE_MARKER

    def has_jobs(self) -> bool:
        return self.jobs_path.exists()

    def load_jobs(self) -> List[Job]:
        """
        Load jobs sorted by priority (lowest first, file order breaks ties).

        Returns:
            Jobs, or an empty list if the file does not exist

        Raises:
            PersistenceError: If the file is unreadable or malformed
        """
        if not self.jobs_path.exists():
            return []
        try:
            raw = json.loads(self.jobs_path.read_text(encoding="utf-8"))
            envelope = None
            if isinstance(raw, dict):
                envelope = {key: value for key, value in raw.items() if key != "jobs"}
                raw = raw.get("jobs", [])
            jobs = [Job.model_validate(item) for item in raw]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            raise PersistenceError(f"Cannot read {JOBS_PATH}: {e}") from e
        self._envelope = envelope
        self._file_order = {job.id: index for index, job in enumerate(jobs)}
        return sorted(jobs, key=lambda job: job.priority)

    def save_jobs(self, jobs: List[Job]) -> None:
        """
        Write jobs back in the shape they were loaded in.

        Jobs keep their file order (new ones go last), a {"jobs": [...]}
        wrapper keeps its other keys and unknown job fields are written back.
        """
        ordered = sorted(
            enumerate(jobs),
            key=lambda pair: (self._file_order.get(pair[1].id, len(self._file_order)), pair[0]),
        )
        payload: Any = [job.model_dump(mode="json", by_alias=True) for _, job in ordered]
        if self._envelope is not None:
            payload = {**self._envelope, "jobs": payload}
        try:
            atomic_write_text(self.jobs_path, json.dumps(payload, indent=2) + "\n")
        except OSError as e:
            raise PersistenceError(f"Cannot write {JOBS_PATH}: {e}") from e
        logger.debug("Saved %d jobs", len(jobs))

    def load_plan(self) -> str:
        if not self.plan_path.exists():
            return ""
        try:
            return self.plan_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read {PLAN_PATH}: {e}") from e

    def marker_exists(self) -> bool:
        return self.marker_path.exists()

    def create_marker(self, reason: Optional[str] = None) -> None:
        content = reason or f"Loop completed at {datetime.now(timezone.utc).isoformat()}"
        try:
            atomic_write_text(self.marker_path, content)
        except OSError as e:
            raise PersistenceError(f"Cannot write {DONE_MARKER}: {e}") from e

    def remove_marker(self) -> None:
        try:
            self.marker_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceError(f"Cannot remove {DONE_MARKER}: {e}") from e

    def load_prompt(self, relative_path: str) -> str:
        path = self.working_directory / relative_path
        if not path.exists():
            raise PromptNotFoundError(relative_path)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read prompt {relative_path}: {e}") from e
