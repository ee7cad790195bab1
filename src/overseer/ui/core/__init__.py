"""
Rendering core: cell buffer, layout and terminal I/O.
"""
