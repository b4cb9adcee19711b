"""
Persistent job records keyed by id and by status.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from faceforge.errors import ConcurrentModification, JobNotFound
from faceforge.models import utcnow
from faceforge.models.job import Job, JobStatus

logger = logging.getLogger(__name__)

StatusGuard = Union[JobStatus, Iterable[JobStatus]]

# Columns a caller may set through update(); id and created_at never change
UPDATABLE_FIELDS = frozenset({
    'name', 'model_id', 'voice_id', 'text', 'status', 'audio_path', 'audio_fixed',
    'remote_handle', 'progress', 'message', 'result_path', 'duration',
    'completed_at',
})


def _status_values(guard: StatusGuard) -> List[str]:
    if isinstance(guard, JobStatus):
        return [guard.value]
    return [JobStatus(s).value for s in guard]


class JobStore:
    """
    Job persistence on top of an async session factory.

    Every method opens its own session and commits before returning, so
    each call is one transaction. The store is created once at startup and
    handed to the scheduler and the video service.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def now(self) -> datetime:
        """Current time from the store's clock, used for every job timestamp."""
        return self._clock()

    async def insert(self, job: Job) -> str:
        """Persist a new job, assigning its id and creation time."""
        job.created_at = self._clock()
        job.updated_at = job.created_at
        if job.status is None:
            job.status = JobStatus.draft.value
        if job.progress is None:
            job.progress = 0
        async with self._session_factory() as session:
            session.add(job)
            await session.commit()
        return job.id

    async def get_by_id(self, job_id: str) -> Optional[Job]:
        async with self._session_factory() as session:
            result = await session.execute(select(Job).where(Job.id == job_id))
            return result.scalar_one_or_none()

    async def list_by_status(self, status: JobStatus) -> List[Job]:
        """Jobs in a status, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Job)
                .where(Job.status == JobStatus(status).value)
                .order_by(Job.created_at.asc(), Job.id.asc())
            )
            return list(result.scalars().all())

    async def find_first_by_status(self, status: JobStatus) -> Optional[Job]:
        """The earliest-created job in a status, if any."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Job)
                .where(Job.status == JobStatus(status).value)
                .order_by(Job.created_at.asc(), Job.id.asc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def count_by_status(self) -> Dict[str, int]:
        """Number of jobs per status; statuses with no jobs report 0."""
        counts = {s.value: 0 for s in JobStatus}
        async with self._session_factory() as session:
            result = await session.execute(
                select(Job.status, func.count(Job.id)).group_by(Job.status)
            )
            for status, count in result.all():
                counts[status] = count
        return counts

    async def list_page(self, limit: int, offset: int, name: str = '') -> tuple:
        """Newest-first page of jobs, optionally filtered by name. Returns (jobs, total)."""
        query = select(Job)
        count_query = select(func.count(Job.id))
        if name:
            pattern = f'%{name}%'
            query = query.where(Job.name.like(pattern))
            count_query = count_query.where(Job.name.like(pattern))

        async with self._session_factory() as session:
            total = (await session.execute(count_query)).scalar()
            result = await session.execute(
                query.order_by(Job.created_at.desc()).limit(limit).offset(offset)
            )
            return list(result.scalars().all()), total

    async def update(self, job_id: str, expected_status: Optional[StatusGuard] = None, **fields) -> Job:
        """
        Merge the named fields into a stored job and return the fresh record.

        The write is a single UPDATE statement. When expected_status is
        given, the row is only written while it still holds that status (or
        one of those statuses); otherwise ConcurrentModification is raised
        and nothing changes.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f'Unknown job fields: {", ".join(sorted(unknown))}')
        if isinstance(fields.get('status'), JobStatus):
            fields['status'] = fields['status'].value
        fields['updated_at'] = self._clock()

        stmt = update(Job).where(Job.id == job_id)
        if expected_status is not None:
            stmt = stmt.where(Job.status.in_(_status_values(expected_status)))

        async with self._session_factory() as session:
            result = await session.execute(stmt.values(**fields))
            await session.commit()
            written = result.rowcount

        job = await self.get_by_id(job_id)
        if job is None:
            raise JobNotFound(job_id)
        if not written:
            raise ConcurrentModification(job_id, _status_values(expected_status), job.status)
        return job

    async def remove(self, job_id: str):
        async with self._session_factory() as session:
            result = await session.execute(delete(Job).where(Job.id == job_id))
            await session.commit()
        if not result.rowcount:
            raise JobNotFound(job_id)
        logger.info('Job %s removed', job_id)
