"""
External collaborators: persisted loop state and the agent backend.
"""
