"""
Duration probing of rendered videos with ffprobe.
"""
import asyncio
import json
import logging
import subprocess
from pathlib import Path

from faceforge.config import FFPROBE_PATH, RESULT_DIR
from faceforge.errors import MediaProbeFailure

logger = logging.getLogger(__name__)


def _seconds(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_result_path(result_ref: str, base_dir: Path = RESULT_DIR) -> Path:
    """Absolute refs are used as-is; relative ones live under base_dir."""
    path = Path(result_ref)
    if not path.is_absolute():
        path = Path(base_dir) / path.as_posix().lstrip('/')
    return path


class MediaProbe:
    """Reads media durations; relative paths resolve under the result directory."""

    def __init__(self, ffprobe_path: str = FFPROBE_PATH, base_dir: Path = RESULT_DIR):
        self.ffprobe_path = ffprobe_path
        self.base_dir = Path(base_dir)

    def resolve(self, result_ref: str) -> Path:
        return resolve_result_path(result_ref, self.base_dir)

    async def get_duration(self, result_ref: str) -> float:
        """
        Duration in seconds of the video at result_ref.

        Prefers the video stream's duration and falls back to the
        container's.

        Raises:
            MediaProbeFailure: ffprobe failed or reported no usable duration
        """
        path = self.resolve(result_ref)
        cmd = [
            self.ffprobe_path,
            '-v', 'quiet',
            '-print_format', 'json',
            '-show_format',
            '-show_streams',
            str(path),
        ]

        try:
            result = await asyncio.to_thread(
                subprocess.run, cmd, capture_output=True, text=True
            )
        except OSError as e:
            raise MediaProbeFailure(f'Could not run ffprobe: {e}') from e

        if result.returncode != 0:
            logger.error('ffprobe failed for %s: %s', path, result.stderr)
            raise MediaProbeFailure(f'ffprobe failed for {path.name}: {result.stderr.strip()}')

        try:
            data = json.loads(result.stdout or '{}')
        except ValueError as e:
            raise MediaProbeFailure(f'Unreadable ffprobe output for {path.name}') from e

        for stream in data.get('streams', []):
            if stream.get('codec_type') == 'video':
                seconds = _seconds(stream.get('duration'))
                if seconds is not None:
                    return seconds

        seconds = _seconds(data.get('format', {}).get('duration'))
        if seconds is not None:
            return seconds

        raise MediaProbeFailure(f'No video stream found in {path.name}')
