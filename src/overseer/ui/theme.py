"""
UI Theme configuration: colors, icons, and styles.
"""

from typing import Dict

THEME: Dict[str, str] = {
    # Text Types
    "text": "#e6edf3",  # Main text
    "muted": "#7d8590",  # Muted text
    "dim": "#484f58",
    "header": "#ffffff",
    "accent": "#58a6ff",  # Blue for focus and the current action
    # Severity
    "info": "#c9d1d9",
    "success": "#3fb950",
    "warning": "#d29922",
    "error": "#f85149",
    # UI Elements
    "border": "#30363d",
    "border_focus": "#58a6ff",
    "backdrop": "#484f58 on #0d1117",
    "selected": "bold #0d1117 on #58a6ff",
    "input": "#ffcc00",  # Gold/Yellow
    "paused": "bold #0d1117 on #d29922",
    # Phase Colors
    "phase_gathering": "#aaaaff",
    "phase_planning": "#ffaa00",
    "phase_building": "#00ff88",
}

ICONS: Dict[str, str] = {
    # Activity kinds
    "action": "●",
    "command": "$",
    "test_result": "✓",
    "phase_transition": "◆",
    "warning": "⚠",
    "error": "✗",
    "file_edit": "✎",
    "agent_output": "┊",
    "verification": "⊙",
    # Task states
    "pending": "○",
    "in_progress": "▶",
    "complete": "✓",
    "failed": "✗",
    # Step indicator
    "step_done": "●",
    "step_todo": "○",
    # Decorative
    "prompt": ">",
    "separator": "│",
    "paused": "⏸",
    "tree_mid": "├─",
    "tree_end": "└─",
}

SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]
PROGRESS_FILLED = "█"
PROGRESS_EMPTY = "░"
