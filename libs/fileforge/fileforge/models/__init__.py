"""Core data models for FileForge."""

from fileforge.models.artifact import Artifact
from fileforge.models.job import Job, JobOperation, JobStatus
from fileforge.models.options import KEEP_ORIGINAL, ProcessingOptions

__all__ = [
    "Artifact",
    "Job",
    "JobOperation",
    "JobStatus",
    "KEEP_ORIGINAL",
    "ProcessingOptions",
]
