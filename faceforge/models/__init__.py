"""
SQLAlchemy models.
"""
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


from faceforge.models.job import Job, JobStatus, IN_FLIGHT_STATUSES  # noqa: E402
from faceforge.models.reference import FaceModel, Voice  # noqa: E402

__all__ = ['Base', 'utcnow', 'Job', 'JobStatus', 'IN_FLIGHT_STATUSES', 'FaceModel', 'Voice']
