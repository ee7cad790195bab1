"""
Slash command registry.

Commands typed at the prompt start with "/". Local commands are handled by
the renderer itself; the rest are forwarded to the orchestrator as
SlashCommand values.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..bus.commands import SlashCommand


@dataclass(frozen=True)
class SlashCommandInfo:
    name: str
    description: str
    local: bool = False


SLASH_COMMANDS: Dict[str, SlashCommandInfo] = {
    info.name: info
    for info in (
        SlashCommandInfo("help", "Show available commands", local=True),
        SlashCommandInfo("approve", "Approve the specification and start planning"),
        SlashCommandInfo("plan", "Approve and run the planning phase"),
        SlashCommandInfo("build", "Approve and run the build loop"),
        SlashCommandInfo("pause", "Pause at the next iteration boundary", local=True),
        SlashCommandInfo("resume", "Resume a paused loop", local=True),
        SlashCommandInfo("status", "Report workflow step and job progress"),
        SlashCommandInfo("resources", "Pick a context resource to view", local=True),
        SlashCommandInfo("quit", "Cancel the run and exit", local=True),
    )
}


def parse_slash(text: str) -> Optional[SlashCommand]:
    """
    Parse prompt text as a slash command.

    Returns:
        SlashCommand, or None if text is not a slash command
    """
    stripped = text.strip()
    if not stripped.startswith("/") or len(stripped) == 1:
        return None
    name, *args = stripped[1:].split()
    return SlashCommand(name.lower(), tuple(args))


def is_known(command: SlashCommand) -> bool:
    return command.name in SLASH_COMMANDS


def is_local(command: SlashCommand) -> bool:
    info = SLASH_COMMANDS.get(command.name)
    return info is not None and info.local


def help_lines() -> Tuple[str, ...]:
    width = max(len(name) for name in SLASH_COMMANDS) + 1
    return tuple(
        f"/{info.name:<{width}}  {info.description}" for info in SLASH_COMMANDS.values()
    )