"""
Entry points for the overseer harness.

run() drives the full-screen interactive renderer on the main thread with the
orchestrator on a worker thread. run_headless() keeps the same orchestrator
and loop controller but prints events as lines instead. --gallery shows the
component gallery and exits.
"""

import logging
import shlex
import sys
import threading
from pathlib import Path
from typing import Dict, Optional

from rich.console import Console

from . import __version__
from .bus import MessageBus
from .config import HarnessConfig
from .errors import ConfigurationError
from .services.agent.session import AgentSession, SubprocessAgentSession
from .ui.app import KeySource, ScreenSink, TuiApplication
from .ui.core.terminal import KeyboardInput, TerminalSink
from .ui.gallery import run_gallery
from .ui.headless import HeadlessConsumer
from .ui.slash_commands import help_lines
from .ui.state import ActiveModal, ModalKind, ModalSpec, TopPanelData, UiState
from .ui.theme import THEME
from .utils.logging import setup_logging
from .workflow.orchestrator import Orchestrator
from .workflow.outcome import ExitOutcome

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = Path(".overseer") / "overseer.log"
WORKER_JOIN_TIMEOUT = 10.0


def build_session(config: HarnessConfig) -> AgentSession:
    return SubprocessAgentSession(
        config.agent_command,
        config.working_directory,
        model=config.model,
        allow_all=config.allow_all_operations,
    )


def initial_state(config: HarnessConfig) -> UiState:
    landing = ModalSpec(
        kind=ModalKind.LANDING,
        title=f"overseer v{__version__}",
        message="Supervise an autonomous coding agent from plan to done.",
        lines=help_lines(),
        options=("Continue", "Help"),
        local=True,
    )
    return UiState(
        split_percent=config.split_percent,
        top=TopPanelData(version=__version__, model_name=config.model),
        modal=ActiveModal(landing),
    )


def _start_worker(orchestrator: Orchestrator, result: Dict[str, ExitOutcome]) -> threading.Thread:
    def body() -> None:
        result["outcome"] = orchestrator.run()

    worker = threading.Thread(target=body, name="overseer-orchestrator", daemon=True)
    worker.start()
    return worker


def _finish(worker: threading.Thread, bus: MessageBus, cancellation: threading.Event, result: Dict[str, ExitOutcome]) -> ExitOutcome:
    if worker.is_alive():
        cancellation.set()
        worker.join(WORKER_JOIN_TIMEOUT)
        if worker.is_alive():
            logger.warning("Orchestrator did not stop within %.0fs", WORKER_JOIN_TIMEOUT)
    bus.close()
    if "outcome" in result:
        return result["outcome"]
    return ExitOutcome.CANCELLED if cancellation.is_set() else ExitOutcome.FAILURE


def run(
    config: HarnessConfig,
    cancellation: Optional[threading.Event] = None,
    session: Optional[AgentSession] = None,
    sink: Optional[ScreenSink] = None,
    keys: Optional[KeySource] = None,
) -> ExitOutcome:
    """
    Run the interactive harness until the workflow finishes or is cancelled.

    Args:
        config: Resolved configuration
        cancellation: Shared cancellation flag (created if omitted)
        session: Agent backend (the configured CLI if omitted)
        sink: Screen output (the terminal if omitted)
        keys: Key source (raw terminal input if omitted)

    Returns:
        ExitOutcome of the run
    """
    cancellation = cancellation or threading.Event()
    setup_logging(config.verbose, config.log_file or config.resolve(str(DEFAULT_LOG_FILE)))
    logger.info("Starting interactive run in %s", config.working_directory)

    bus = MessageBus()
    orchestrator = Orchestrator(config, bus, cancellation, session or build_session(config), attended=True)
    result: Dict[str, ExitOutcome] = {}
    worker = _start_worker(orchestrator, result)

    app = TuiApplication(
        bus,
        cancellation,
        sink or TerminalSink(Console()),
        keys or KeyboardInput(),
        frame_rate=config.frame_rate,
        initial_state=initial_state(config),
        worker_alive=worker.is_alive,
    )
    try:
        final = app.run()
    except KeyboardInterrupt:
        cancellation.set()
        final = app.state
    outcome = _finish(worker, bus, cancellation, result)
    if final.outcome_message:
        Console(stderr=True).print(final.outcome_message, style=THEME["muted"], highlight=False)
    return outcome


def run_headless(
    config: HarnessConfig,
    cancellation: Optional[threading.Event] = None,
    session: Optional[AgentSession] = None,
    console: Optional[Console] = None,
) -> ExitOutcome:
    """
    Run unattended, printing progress as lines.

    Starting a headless run counts as approving the specification; repeated
    failures end the run with INTERVENTION_REQUIRED.
    """
    cancellation = cancellation or threading.Event()
    console = console or Console()
    setup_logging(config.verbose, config.log_file, console=Console(stderr=True))
    logger.info("Starting headless run in %s", config.working_directory)

    bus = MessageBus()
    orchestrator = Orchestrator(config, bus, cancellation, session or build_session(config), attended=False)
    result: Dict[str, ExitOutcome] = {}
    worker = _start_worker(orchestrator, result)

    consumer = HeadlessConsumer(console, stream_output=config.stream_output)
    try:
        consumer.pump(bus, worker.is_alive)
    except KeyboardInterrupt:
        console.print("Cancelling after the current iteration...", style=THEME["warning"])
        cancellation.set()
        consumer.pump(bus, worker.is_alive)
    return _finish(worker, bus, cancellation, result)


def cli():
    """CLI entry point with argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Overseer - supervise an autonomous coding agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Print progress as lines and run without prompting",
    )
    parser.add_argument(
        "--gallery",
        action="store_true",
        help="Page through every panel and modal with sample data, then exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with detailed logs",
    )
    parser.add_argument("--model", type=str, help="Agent model name")
    parser.add_argument(
        "-C",
        "--working-directory",
        type=Path,
        help="Project directory (defaults to the current directory)",
    )
    parser.add_argument("--plan-prompt", type=str, help="Plan prompt file, relative to the project")
    parser.add_argument("--build-prompt", type=str, help="Build prompt file, relative to the project")
    parser.add_argument("--max-iterations", type=int, help="Stop after this many build iterations")
    parser.add_argument(
        "--failure-threshold",
        type=int,
        help="Consecutive failures of one task before asking for help",
    )
    parser.add_argument("--test-command", type=str, help="Command that runs the test suite")
    parser.add_argument("--build-command", type=str, help="Command that builds the project")
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip the verification gate after each iteration",
    )
    parser.add_argument("--log-file", type=Path, help="Write logs to this file")

    args = parser.parse_args()
    console = Console()

    if args.gallery:
        run_gallery(TerminalSink(console), KeyboardInput())
        sys.exit(ExitOutcome.SUCCESS.exit_code)

    overrides = {
        "model": args.model,
        "working_directory": args.working_directory,
        "plan_prompt_path": args.plan_prompt,
        "build_prompt_path": args.build_prompt,
        "max_iterations": args.max_iterations,
        "failure_threshold": args.failure_threshold,
        "test_command": shlex.split(args.test_command) if args.test_command else None,
        "build_command": shlex.split(args.build_command) if args.build_command else None,
        "log_file": args.log_file,
    }
    if args.verbose:
        overrides["verbose"] = True
    if args.no_verify:
        overrides["verify_after_iteration"] = False

    try:
        config = HarnessConfig.from_env(**overrides)
    except ConfigurationError as e:
        console.print(f"[{THEME['error']}]Invalid configuration:[/] {e}")
        sys.exit(ExitOutcome.FAILURE.exit_code)

    if args.headless:
        outcome = run_headless(config)
    else:
        outcome = run(config)
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    cli()
