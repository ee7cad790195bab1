"""
Workflow orchestration: state machine, failure handling and the build loop.
"""
