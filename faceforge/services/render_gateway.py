"""
Render Gateway for the face-to-face video synthesis service.

The service speaks a submit/poll protocol: submit hands over an audio
track and a face video under a caller-chosen task code, and the code is
then polled until the task reports success or failure.
"""
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import httpx

from faceforge.config import GATEWAY_TIMEOUT, RENDER_SERVICE_URL
from faceforge.errors import GatewayUnavailable

logger = logging.getLogger(__name__)

# Envelope codes returned by the render service
CODE_OK = 10000
TERMINAL_FAILURE_CODES = frozenset({9999, 10002, 10003})

# data.status values inside a successful query envelope
TASK_RUNNING = 1
TASK_SUCCEEDED = 2
TASK_FAILED = 3


class RemoteState(str, enum.Enum):
    running = 'running'
    succeeded = 'succeeded'
    failed = 'failed'


@dataclass
class SubmitResult:
    accepted: bool
    remote_handle: Optional[str]
    message: str


@dataclass
class PollResult:
    state: RemoteState
    progress: int = 0
    message: str = ''
    result_ref: Optional[str] = None


def _as_progress(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class RenderGateway:
    """Submits render tasks and polls their status."""

    def __init__(
        self,
        base_url: str = RENDER_SERVICE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = GATEWAY_TIMEOUT,
    ):
        self.base_url = base_url.rstrip('/')
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f'{self.base_url}{path}'
        logger.debug('[Render] %s %s', method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error('[Render] %s %s failed: %s', method, url, e)
            raise GatewayUnavailable(f'Render service error: {e}') from e
        except ValueError as e:
            raise GatewayUnavailable(f'Render service returned invalid JSON: {e}') from e

        if not isinstance(body, dict):
            raise GatewayUnavailable('Render service returned an unexpected response')
        logger.debug('[Render] response %s', body)
        return body

    async def submit(self, audio_ref: str, video_ref: str) -> SubmitResult:
        """
        Submit a render task.

        Returns:
            SubmitResult; remote_handle is the task code to poll with
        """
        code = str(uuid.uuid4())
        payload = {
            'audio_url': audio_ref,
            'video_url': video_ref,
            'code': code,
            'chaofen': 0,
            'watermark_switch': 0,
            'pn': 1,
        }
        body = await self._request('POST', '/submit', json=payload)

        if body.get('code') == CODE_OK:
            return SubmitResult(
                accepted=True,
                remote_handle=code,
                message=body.get('msg') or 'Task submitted successfully',
            )
        return SubmitResult(
            accepted=False,
            remote_handle=None,
            message=body.get('msg') or 'Task submission failed',
        )

    async def poll(self, remote_handle: str) -> PollResult:
        """Query the status of a submitted task."""
        body = await self._request('GET', '/query', params={'code': remote_handle})
        code = body.get('code')

        if code in TERMINAL_FAILURE_CODES:
            return PollResult(state=RemoteState.failed, message=body.get('msg') or 'Render task failed')

        if code != CODE_OK:
            # Unrecognised envelope, keep waiting
            return PollResult(state=RemoteState.running, message=body.get('msg') or '')

        data = body.get('data') or {}
        status = data.get('status')
        message = data.get('msg') or ''
        progress = _as_progress(data.get('progress'))

        if status == TASK_SUCCEEDED:
            return PollResult(
                state=RemoteState.succeeded,
                progress=progress,
                message=message,
                result_ref=data.get('result'),
            )
        if status == TASK_FAILED:
            return PollResult(state=RemoteState.failed, progress=progress, message=message or 'Render task failed')
        return PollResult(state=RemoteState.running, progress=progress, message=message)

    async def aclose(self):
        await self._client.aclose()
