"""
Verification gate for jobs the agent reports as done.

A job passes when its tests pass, its requirement code is documented under
docs/, the code exists in a SPECIFICATION.md and the build succeeds. Test and
build checks run the configured commands; an unconfigured command passes with
a note.
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..services.state.loop_store import JOBS_PATH, PLAN_PATH, Job

logger = logging.getLogger(__name__)

DOC_SUFFIXES = (".md", ".rst", ".txt")
SPECIFICATION_NAME = "SPECIFICATION.md"
SKIPPED_DIRS = {".git", "node_modules", ".venv", "venv", "__pycache__", "bin", "obj"}
OUTPUT_TAIL_LINES = 20


class VerificationResult(BaseModel):
    complete: bool = False
    tests_pass: bool = False
    documentation_exists: bool = False
    build_succeeds: bool = False
    requirement_valid: bool = False
    issues: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @classmethod
    def failed(cls, *issues: str) -> "VerificationResult":
        return cls(complete=False, issues=list(issues))


class CommandCheck(BaseModel):
    passed: bool
    issues: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


def _tail(output: str) -> str:
    lines = [line for line in output.splitlines() if line.strip()]
    return "\n".join(lines[-OUTPUT_TAIL_LINES:])


def _walk(root: Path) -> Iterable[Path]:
    if not root.is_dir():
        return
    for path in sorted(root.iterdir()):
        if path.is_dir():
            if path.name in SKIPPED_DIRS:
                continue
            yield from _walk(path)
        elif path.is_file():
            yield path


def _mentions(path: Path, needle: str) -> bool:
    try:
        return needle in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


class VerificationGate:
    """Runs the four completion checks for a job."""

    def __init__(
        self,
        working_directory: Path,
        test_command: Optional[Sequence[str]] = None,
        build_command: Optional[Sequence[str]] = None,
        timeout: float = 600.0,
    ):
        self.working_directory = Path(working_directory)
        self.test_command = list(test_command) if test_command else None
        self.build_command = list(build_command) if build_command else None
        self.timeout = timeout

    def run_command(self, name: str, command: Optional[List[str]]) -> CommandCheck:
        if not command:
            return CommandCheck(passed=True, notes=[f"No {name} command configured"])
        logger.info("Running %s command: %s", name, " ".join(command))
        try:
            completed = subprocess.run(
                command,
                cwd=self.working_directory,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return CommandCheck(passed=False, issues=[f"{name.capitalize()} command not found: {command[0]}"])
        except subprocess.TimeoutExpired:
            return CommandCheck(passed=False, issues=[f"{name.capitalize()} command timed out after {self.timeout:.0f}s"])

        if completed.returncode == 0:
            return CommandCheck(passed=True)
        issue = f"{name.capitalize()} command failed with exit code {completed.returncode}"
        output = _tail((completed.stdout or "") + (completed.stderr or ""))
        if output:
            issue = f"{issue}:\n{output}"
        return CommandCheck(passed=False, issues=[issue])

    def documentation_exists(self, requirement_code: str) -> bool:
        """True if a document under docs/ mentions the code (excluding loop state and specs)."""
        excluded = {self.working_directory / JOBS_PATH, self.working_directory / PLAN_PATH}
        for path in _walk(self.working_directory / "docs"):
            if path in excluded or path.name == SPECIFICATION_NAME:
                continue
            if path.suffix.lower() in DOC_SUFFIXES and _mentions(path, requirement_code):
                return True
        return False

    def requirement_valid(self, requirement_code: str) -> bool:
        """True if any SPECIFICATION.md in the tree contains the code."""
        return any(
            path.name == SPECIFICATION_NAME and _mentions(path, requirement_code)
            for path in _walk(self.working_directory)
        )

    def run_commands(self) -> Tuple[CommandCheck, CommandCheck]:
        return (
            self.run_command("test", self.test_command),
            self.run_command("build", self.build_command),
        )

    def verify(self, job: Job, commands: Optional[Tuple[CommandCheck, CommandCheck]] = None) -> VerificationResult:
        """
        Verify one job.

        Args:
            job: The job to check
            commands: Pre-computed (tests, build) results to reuse

        Returns:
            VerificationResult; complete only if every check passed
        """
        tests, build = commands or self.run_commands()
        issues = tests.issues + build.issues
        notes = tests.notes + build.notes

        code = job.requirement_code.strip()
        if code:
            docs_ok = self.documentation_exists(code)
            if not docs_ok:
                issues.append(f"No documentation under docs/ mentions {code}")
            requirement_ok = self.requirement_valid(code)
            if not requirement_ok:
                issues.append(f"Requirement code {code} not found in any {SPECIFICATION_NAME} file")
        else:
            docs_ok = requirement_ok = True
            notes.append(f"Job {job.id} has no requirement code; documentation and requirement checks skipped")

        result = VerificationResult(
            complete=tests.passed and build.passed and docs_ok and requirement_ok,
            tests_pass=tests.passed,
            documentation_exists=docs_ok,
            build_succeeds=build.passed,
            requirement_valid=requirement_ok,
            issues=issues,
            notes=notes,
        )
        logger.info("Verified job %s: %s", job.id, "complete" if result.complete else f"{len(issues)} issue(s)")
        return result

    def verify_jobs(self, jobs: Iterable[Job]) -> Dict[str, VerificationResult]:
        """Verify several jobs, running the test and build commands once."""
        jobs = list(jobs)
        if not jobs:
            return {}
        commands = self.run_commands()
        return {job.id: self.verify(job, commands) for job in jobs}
