"""
Job-specific error types.

All errors inherit from JobError for easy catching. Gateway and probe
errors raised during a scheduler tick become a failed job with the error
text as its message; transition and lookup errors from user actions
propagate to the caller.
"""


class JobError(Exception):
    """Base exception for all job-related failures."""
    pass


class JobNotFound(JobError):
    """Raised when a job cannot be found in the store."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f'Job not found: {job_id}')


class ReferenceNotFound(JobError):
    """Raised when a job's face model or voice no longer resolves."""

    def __init__(self, kind: str, reference_id):
        self.kind = kind
        self.reference_id = reference_id
        super().__init__(f'{kind.capitalize()} not found: {reference_id}')


class GatewayUnavailable(JobError):
    """Raised when a TTS or render call fails or times out."""
    pass


class RemoteTerminalFailure(JobError):
    """Raised when the render service reports the task as failed."""
    pass


class MediaProbeFailure(JobError):
    """Raised when the duration of a rendered result cannot be read."""
    pass


class InvalidTransition(JobError):
    """Raised when an action's guard rejects the job's current status."""

    def __init__(self, action: str, current_status: str, detail: str = ''):
        self.action = action
        self.current_status = current_status
        message = f'Cannot {action} job in status: {current_status}'
        if detail:
            message = f'{message} ({detail})'
        super().__init__(message)


class ConcurrentModification(JobError):
    """Raised when a guarded update finds the job no longer in the expected status."""

    def __init__(self, job_id: str, expected, actual: str):
        self.job_id = job_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'Job {job_id} changed concurrently: expected {expected}, found {actual}'
        )


class ResultFileMissing(JobError):
    """Raised when a completed job's rendered file is no longer on disk."""

    def __init__(self, job_id: str, path):
        self.job_id = job_id
        self.path = path
        super().__init__(f'Video file not found for job {job_id}')
