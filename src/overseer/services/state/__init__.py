from .loop_store import Job, JobStatus, LoopStateStore

__all__ = ["Job", "JobStatus", "LoopStateStore"]
