"""
Tests for the verification gate.
"""

from __future__ import annotations

import sys

from overseer.services.state import Job
from overseer.services.state.loop_store import LoopStateStore
from overseer.workflow.verification import VerificationGate

PASS = [sys.executable, "-c", "print('ok')"]
FAIL = [sys.executable, "-c", "import sys; print('1 failed'); sys.exit(1)"]


def _document(root, code: str) -> None:
    (root / "docs").mkdir(exist_ok=True)
    (root / "docs" / "guide.md").write_text(f"# Guide\n\nCovers {code}.\n", encoding="utf-8")
    (root / "SPECIFICATION.md").write_text(f"## {code}\nThe system shall...\n", encoding="utf-8")


def test_all_checks_pass(tmp_path) -> None:
    """Verify a documented, specified job with passing commands is complete."""
    _document(tmp_path, "REQ-1")
    gate = VerificationGate(tmp_path, test_command=PASS, build_command=PASS)
    result = gate.verify(Job(id="J1", requirement_code="REQ-1"))
    assert result.complete
    assert result.tests_pass and result.build_succeeds
    assert result.documentation_exists and result.requirement_valid
    assert result.issues == []


def test_failing_test_command_reports_output(tmp_path) -> None:
    """Verify a non-zero exit fails the job with the output tail."""
    _document(tmp_path, "REQ-1")
    gate = VerificationGate(tmp_path, test_command=FAIL)
    result = gate.verify(Job(id="J1", requirement_code="REQ-1"))
    assert not result.complete
    assert not result.tests_pass
    assert result.build_succeeds
    assert result.issues[0].startswith("Test command failed with exit code 1")
    assert "1 failed" in result.issues[0]


def test_missing_executable(tmp_path) -> None:
    """Verify an unknown command is an issue, not an exception."""
    gate = VerificationGate(tmp_path, build_command=["definitely-not-a-real-binary-xyz"])
    check = gate.run_command("build", gate.build_command)
    assert not check.passed
    assert "Build command not found" in check.issues[0]


def test_timeout(tmp_path) -> None:
    """Verify a command that overruns the timeout fails."""
    gate = VerificationGate(tmp_path, timeout=0.2)
    check = gate.run_command("test", [sys.executable, "-c", "import time; time.sleep(5)"])
    assert not check.passed
    assert "timed out" in check.issues[0]


def test_unconfigured_commands_pass_with_note(tmp_path) -> None:
    """Verify missing commands pass and leave a note."""
    check = VerificationGate(tmp_path).run_command("test", None)
    assert check.passed
    assert check.notes == ["No test command configured"]


def test_documentation_excludes_loop_state(tmp_path) -> None:
    """Verify the jobs file, plan and specs do not count as documentation."""
    store = LoopStateStore(tmp_path)
    store.save_jobs([Job(id="J1", requirement_code="REQ-9")])
    store.plan_path.write_text("REQ-9 is planned", encoding="utf-8")
    (tmp_path / "docs" / "SPECIFICATION.md").write_text("REQ-9", encoding="utf-8")
    gate = VerificationGate(tmp_path)
    assert not gate.documentation_exists("REQ-9")
    assert gate.requirement_valid("REQ-9")

    (tmp_path / "docs" / "usage.rst").write_text("See REQ-9", encoding="utf-8")
    assert gate.documentation_exists("REQ-9")


def test_missing_docs_and_requirement(tmp_path) -> None:
    """Verify undocumented, unspecified codes produce two issues."""
    result = VerificationGate(tmp_path).verify(Job(id="J1", requirement_code="REQ-404"))
    assert not result.complete
    assert len(result.issues) == 2
    assert "REQ-404" in result.issues[0]


def test_job_without_requirement_code_skips_document_checks(tmp_path) -> None:
    """Verify jobs with no code skip the documentation and requirement checks."""
    result = VerificationGate(tmp_path).verify(Job(id="J2"))
    assert result.complete
    assert any("no requirement code" in note for note in result.notes)


def test_verify_jobs_runs_commands_once(tmp_path) -> None:
    """Verify the test command runs once for several jobs."""
    counter = tmp_path / "count.txt"
    command = [sys.executable, "-c", f"open({str(counter)!r}, 'a').write('x')"]
    gate = VerificationGate(tmp_path, test_command=command)
    results = gate.verify_jobs([Job(id="A"), Job(id="B")])
    assert set(results) == {"A", "B"}
    assert counter.read_text() == "x"
    assert gate.verify_jobs([]) == {}
