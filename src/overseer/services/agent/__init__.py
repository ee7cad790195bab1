from .session import AgentSession, ScriptedAgentSession, SubprocessAgentSession

__all__ = ["AgentSession", "ScriptedAgentSession", "SubprocessAgentSession"]
