"""
Terminal user interface: state snapshot, components and the render loop.
"""
