"""
TTS Gateway wrapping the remote voice-cloning synthesis service.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

import httpx

from faceforge.config import AUDIO_DIR, GATEWAY_TIMEOUT, TTS_SERVICE_URL
from faceforge.errors import GatewayUnavailable
from faceforge.models.reference import Voice

logger = logging.getLogger(__name__)

# Sampling parameters sent with every synthesis request
SYNTHESIS_DEFAULTS = {
    'format': 'wav',
    'topP': 0.7,
    'max_new_tokens': 1024,
    'chunk_length': 100,
    'repetition_penalty': 1.2,
    'temperature': 0.7,
    'need_asr': False,
    'streaming': False,
    'is_fixed_seed': 0,
    'is_norm': 1,
}


class TTSGateway:
    """
    Turns (voice, text) into a WAV file on disk.

    The remote service clones the voice from its reference audio and
    transcript and answers with raw audio bytes, which are written to
    the audio directory under a fresh name.
    """

    def __init__(
        self,
        base_url: str = TTS_SERVICE_URL,
        output_dir: Path = AUDIO_DIR,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = GATEWAY_TIMEOUT,
    ):
        self.base_url = base_url.rstrip('/')
        self.output_dir = Path(output_dir)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def synthesize(self, voice: Voice, text: str) -> str:
        """
        Generate speech for text in the given voice.

        Args:
            voice: Voice whose reference audio and transcript are cloned
            text: Text to synthesize

        Returns:
            Path of the written audio file

        Raises:
            GatewayUnavailable: the service is unreachable or answered with an error
        """
        speaker = str(uuid.uuid4())
        payload = {
            'speaker': speaker,
            'text': text,
            'reference_audio': voice.reference_audio,
            'reference_text': voice.reference_text,
            **SYNTHESIS_DEFAULTS,
        }
        url = f'{self.base_url}/v1/invoke'
        logger.info('Making audio for voice %s, text length: %d', voice.id, len(text))

        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error('TTS request to %s failed: %s', url, e)
            raise GatewayUnavailable(f'TTS service error: {e}') from e

        if not response.content:
            raise GatewayUnavailable('TTS service error: empty audio response')

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f'{speaker}.wav'
        output_path.write_bytes(response.content)

        logger.info('Audio generated: %s', output_path.name)
        return str(output_path)

    async def aclose(self):
        await self._client.aclose()
