"""
Agent backends.

An agent session turns a prompt into a finite stream of output lines. The
stream has a single reader; closing it early releases the backend.
"""

import logging
import subprocess
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Iterable, Iterator, List, Optional, Protocol, Sequence, Union

import psutil

from ...errors import AgentSessionError

logger = logging.getLogger(__name__)


class AgentSession(Protocol):
    def send(self, prompt: str) -> Iterator[str]:
        """Stream the agent's output lines for one prompt."""
        ...


def kill_process_tree(pid: int, timeout: float = 3.0) -> None:
    """Terminate a process and all of its children, escalating to kill."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    procs = parent.children(recursive=True) + [parent]
    for proc in procs:
        try:
            proc.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue


class SubprocessAgentSession:
    """
    Runs the agent CLI once per prompt and streams its merged stdout/stderr.

    The prompt is appended to `command`; model and permission flags follow it
    when configured.
    """

    def __init__(
        self,
        command: Sequence[str],
        working_directory: Path,
        model: Optional[str] = None,
        allow_all: bool = False,
        model_flag: Optional[str] = "--model",
        allow_all_flag: Optional[str] = "--allow-all-tools",
    ):
        self.command = list(command)
        self.working_directory = Path(working_directory)
        self.model = model
        self.allow_all = allow_all
        self.model_flag = model_flag
        self.allow_all_flag = allow_all_flag

    def build_args(self, prompt: str) -> List[str]:
        args = self.command + [prompt]
        if self.model and self.model_flag:
            args += [self.model_flag, self.model]
        if self.allow_all and self.allow_all_flag:
            args.append(self.allow_all_flag)
        return args

    def send(self, prompt: str) -> Iterator[str]:
        args = self.build_args(prompt)
        logger.debug("Starting agent: %s", args[0])
        try:
            proc = subprocess.Popen(
                args,
                cwd=self.working_directory,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise AgentSessionError(f"Cannot start agent '{args[0]}': {e}") from e

        finished = False
        try:
            if proc.stdout is None:
                raise AgentSessionError(f"Agent '{args[0]}' started without an output pipe")
            for line in proc.stdout:
                yield line.rstrip("\n")
            returncode = proc.wait()
            finished = True
            if returncode != 0:
                raise AgentSessionError(f"Agent exited with code {returncode}")
        finally:
            if not finished and proc.poll() is None:
                logger.info("Stopping agent process %d", proc.pid)
                kill_process_tree(proc.pid)
                proc.wait()
            if proc.stdout is not None:
                proc.stdout.close()


Script = Union[Sequence[str], Callable[[str], Iterable[str]], BaseException]


class ScriptedAgentSession:
    """
    Deterministic agent for tests and dry runs.

    Each send() consumes the next script: a list of lines, a callable that
    receives the prompt and returns lines, or an exception to raise. Once the
    scripts run out every send() yields nothing.
    """

    def __init__(self, scripts: Iterable[Script] = ()):
        self._scripts: Deque[Script] = deque(scripts)
        self.prompts: List[str] = []
        self.closed = 0

    def send(self, prompt: str) -> Iterator[str]:
        self.prompts.append(prompt)
        script = self._scripts.popleft() if self._scripts else ()
        try:
            if isinstance(script, BaseException):
                raise script
            lines = script(prompt) if callable(script) else script
            for line in lines:
                yield line
        finally:
            self.closed += 1
