"""
Pydantic schemas for queue inspection.
"""
from typing import Optional, List
from pydantic import BaseModel


class QueueStats(BaseModel):
    """Number of jobs in every status."""
    draft: int = 0
    waiting: int = 0
    processing: int = 0
    pending: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0


class WaitingEntry(BaseModel):
    id: str
    name: str
    queue_position: int
    total_in_queue: int


class ProcessingEntry(BaseModel):
    id: str
    name: str
    message: Optional[str] = None


class PendingEntry(BaseModel):
    id: str
    name: str
    progress: int
    message: Optional[str] = None


class QueueSnapshotResponse(BaseModel):
    """Counts for every status plus listings of the live buckets."""
    counts: QueueStats
    waiting: List[WaitingEntry]
    processing: List[ProcessingEntry]
    pending: List[PendingEntry]
