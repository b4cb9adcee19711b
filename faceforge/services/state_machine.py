"""
Job lifecycle transitions.

Each function takes the job (and whatever signal arrived for it) and
returns a Transition: the statuses the job must still be in for the
change to apply, the status it moves to, and the fields to write. Nothing
here touches the store or a gateway; the scheduler and the video service
commit transitions with JobStore.update(expected_status=transition.source).

    draft ──enqueue──► waiting ──promote──► processing ──submitted──► pending
                          ▲                     │                        │
                     retry/enqueue              │ fail                   ├─ polled (running)
                          │                     ▼                        ├─ completed
                        failed ◄────────────────┴──── fail / cancel ─────┘
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Sequence

from faceforge.errors import InvalidTransition
from faceforge.models import utcnow
from faceforge.models.job import IN_FLIGHT_STATUSES, Job, JobStatus
from faceforge.services.render_gateway import PollResult, RemoteState, SubmitResult

CANCELLED_MESSAGE = 'Task cancelled by user'
RETRY_MESSAGE = 'Retrying task...'
QUEUED_MESSAGE = 'Waiting in queue'
SUBMITTING_MESSAGE = 'Submitting task...'

CANCELLABLE: FrozenSet[JobStatus] = frozenset({
    JobStatus.waiting,
    JobStatus.processing,
    JobStatus.pending,
})
ENQUEUEABLE: FrozenSet[JobStatus] = frozenset({JobStatus.draft, JobStatus.failed})


@dataclass
class Transition:
    source: FrozenSet[JobStatus]
    target: JobStatus
    changes: Dict[str, object] = field(default_factory=dict)

    def fields(self) -> Dict[str, object]:
        """Column values to write, status included."""
        return {'status': self.target.value, **self.changes}


def _status(job: Job) -> JobStatus:
    return JobStatus(job.status)


def _require(job: Job, action: str, allowed: FrozenSet[JobStatus]):
    if _status(job) not in allowed:
        raise InvalidTransition(action, job.status)


def _reset_attempt(job: Job) -> Dict[str, object]:
    # Fresh attempt: drop everything the previous one produced
    changes = {
        'remote_handle': None,
        'progress': 0,
        'result_path': None,
        'duration': None,
        'completed_at': None,
    }
    if not job.audio_fixed:
        changes['audio_path'] = None
    return changes


def ensure_can_promote(in_flight: Sequence[Job]):
    """Single-flight precondition: nothing may be processing or pending."""
    if in_flight:
        busy = ', '.join(f'{j.id} ({j.status})' for j in in_flight)
        raise InvalidTransition('promote', JobStatus.waiting.value, f'jobs in flight: {busy}')


def promote(job: Job, in_flight: Sequence[Job]) -> Transition:
    """waiting -> processing, allowed only with no other job in flight."""
    _require(job, 'promote', frozenset({JobStatus.waiting}))
    ensure_can_promote([j for j in in_flight if j.id != job.id])
    return Transition(
        source=frozenset({JobStatus.waiting}),
        target=JobStatus.processing,
        changes={'message': SUBMITTING_MESSAGE, 'progress': 0, 'result_path': None, 'duration': None},
    )


def needs_audio(job: Job) -> bool:
    return not job.audio_path


def audio_ready(job: Job, audio_path: str) -> Transition:
    """TTS produced the audio track; the job stays in processing."""
    _require(job, 'attach audio to', frozenset({JobStatus.processing}))
    return Transition(
        source=frozenset({JobStatus.processing}),
        target=JobStatus.processing,
        changes={'audio_path': audio_path, 'message': 'Audio generated, submitting task...'},
    )


def submitted(job: Job, result: SubmitResult, now: Optional[datetime] = None) -> Transition:
    """Outcome of the render submit call: pending when accepted, failed otherwise."""
    _require(job, 'submit', frozenset({JobStatus.processing}))
    if result.accepted and result.remote_handle:
        return Transition(
            source=frozenset({JobStatus.processing}),
            target=JobStatus.pending,
            changes={'remote_handle': result.remote_handle, 'message': result.message},
        )
    return fail(job, result.message or 'Task submission failed', now)


def polled(job: Job, result: PollResult, now: Optional[datetime] = None) -> Transition:
    """
    A poll that did not finish the task.

    Running tasks stay pending with the latest message; progress never
    moves backwards. A remote failure fails the job. Success is handled by
    completed() once the result has been probed.
    """
    _require(job, 'poll', frozenset({JobStatus.pending}))
    if result.state == RemoteState.failed:
        return fail(job, result.message or 'Render task failed', now)
    if result.state == RemoteState.succeeded:
        raise InvalidTransition('poll', job.status, 'successful results go through completed()')
    return Transition(
        source=frozenset({JobStatus.pending}),
        target=JobStatus.pending,
        changes={
            'progress': max(job.progress or 0, result.progress or 0),
            'message': result.message,
        },
    )


def completed(job: Job, result: PollResult, duration: float, now: Optional[datetime] = None) -> Transition:
    """pending -> completed with the probed result."""
    _require(job, 'complete', frozenset({JobStatus.pending}))
    if not result.result_ref:
        raise InvalidTransition('complete', job.status, 'render result has no file')
    return Transition(
        source=frozenset({JobStatus.pending}),
        target=JobStatus.completed,
        changes={
            'result_path': result.result_ref,
            'duration': duration,
            'progress': max(job.progress or 0, result.progress or 0, 100),
            'message': result.message or 'Video synthesis completed',
            'completed_at': now or utcnow(),
        },
    )


def fail(job: Job, message: str, now: Optional[datetime] = None) -> Transition:
    """Any in-flight status -> failed, keeping the explanation."""
    _require(job, 'fail', CANCELLABLE)
    return Transition(
        source=frozenset({_status(job)}),
        target=JobStatus.failed,
        changes={
            'message': message,
            'result_path': None,
            'duration': None,
            'completed_at': now or utcnow(),
        },
    )


def enqueue(job: Job) -> Transition:
    """draft/failed -> waiting. Leaving failed resets the attempt like retry()."""
    _require(job, 'enqueue', ENQUEUEABLE)
    changes = {'message': QUEUED_MESSAGE, 'progress': 0}
    if _status(job) == JobStatus.failed:
        changes.update(_reset_attempt(job))
    return Transition(source=frozenset({_status(job)}), target=JobStatus.waiting, changes=changes)


def retry(job: Job) -> Transition:
    """failed -> waiting with remote handle, results and generated audio cleared."""
    _require(job, 'retry', frozenset({JobStatus.failed}))
    changes = _reset_attempt(job)
    changes['message'] = RETRY_MESSAGE
    return Transition(source=frozenset({JobStatus.failed}), target=JobStatus.waiting, changes=changes)


def cancel(job: Job, now: Optional[datetime] = None) -> Transition:
    """waiting/processing/pending -> failed. The guard is the whole cancellable set."""
    _require(job, 'cancel', CANCELLABLE)
    return Transition(
        source=CANCELLABLE,
        target=JobStatus.failed,
        changes={
            'message': CANCELLED_MESSAGE,
            'progress': 0,
            'result_path': None,
            'duration': None,
            'completed_at': now or utcnow(),
        },
    )


def is_in_flight(job: Job) -> bool:
    return _status(job) in IN_FLIGHT_STATUSES
