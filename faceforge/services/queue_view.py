"""
Queue positions and snapshots derived from job status.

Nothing here is stored: positions are recomputed from the waiting list
on every call.
"""
from typing import Dict, List, Optional, Sequence

from faceforge.models.job import Job, JobStatus


def _fifo(waiting: Sequence[Job]) -> List[Job]:
    return sorted(waiting, key=lambda j: (j.created_at, j.id))


def queue_position(waiting: Sequence[Job], job_id: str) -> Optional[int]:
    """1-based rank of job_id among waiting jobs by creation time, None if not waiting."""
    for index, job in enumerate(_fifo(waiting)):
        if job.id == job_id:
            return index + 1
    return None


def queue_label(position: int, total: int) -> str:
    """Progress text shown for waiting jobs, e.g. '2 / 5'."""
    return f'{position} / {total}'


def waiting_entries(waiting: Sequence[Job]) -> List[dict]:
    ordered = _fifo(waiting)
    total = len(ordered)
    return [
        {
            'id': job.id,
            'name': job.name,
            'queue_position': index + 1,
            'total_in_queue': total,
        }
        for index, job in enumerate(ordered)
    ]


def build_snapshot(jobs_by_status: Dict[JobStatus, Sequence[Job]]) -> dict:
    """
    Aggregate counts and per-bucket listings for the in-flight and waiting buckets.

    Args:
        jobs_by_status: Jobs keyed by status; statuses missing from the
            mapping count as empty.

    Returns:
        Dict with 'counts' (every status plus 'total') and listings for
        'waiting', 'processing' and 'pending'.
    """
    counts = {s.value: len(jobs_by_status.get(s, ())) for s in JobStatus}
    counts['total'] = sum(counts.values())

    return {
        'counts': counts,
        'waiting': waiting_entries(jobs_by_status.get(JobStatus.waiting, ())),
        'processing': [
            {'id': j.id, 'name': j.name, 'message': j.message}
            for j in jobs_by_status.get(JobStatus.processing, ())
        ],
        'pending': [
            {'id': j.id, 'name': j.name, 'progress': j.progress, 'message': j.message}
            for j in jobs_by_status.get(JobStatus.pending, ())
        ],
    }
