"""
Application configuration and paths.
"""
import os
from pathlib import Path

# Application identity
APP_NAME = 'FaceForge'
APP_VERSION = '0.1.0'

# Server configuration
SERVER_HOST = os.environ.get('FACEFORGE_HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('FACEFORGE_PORT', '3000'))

# Data directory (database, generated audio, render results)
DATA_DIR = Path(os.environ.get('FACEFORGE_DATA_DIR', Path.home() / 'faceforge_data'))

# Database configuration
DATABASE_PATH = Path(os.environ.get('FACEFORGE_DB_PATH', DATA_DIR / 'faceforge.db'))
DATABASE_URL = f'sqlite+aiosqlite:///{DATABASE_PATH}'

# TTS output, handed to the render service as the audio track
AUDIO_DIR = DATA_DIR / 'audio'

# Render service writes its results here; relative result paths resolve against it
RESULT_DIR = Path(os.environ.get('FACEFORGE_RESULT_DIR', DATA_DIR / 'results'))

# Remote services
TTS_SERVICE_URL = os.environ.get('FACEFORGE_TTS_URL', 'http://127.0.0.1:18180')
RENDER_SERVICE_URL = os.environ.get('FACEFORGE_RENDER_URL', 'http://127.0.0.1:8383/easy')
GATEWAY_TIMEOUT = float(os.environ.get('FACEFORGE_GATEWAY_TIMEOUT', '30'))

# Scheduler tick interval in seconds
SCHEDULER_INTERVAL = float(os.environ.get('FACEFORGE_SCHEDULER_INTERVAL', '2.0'))

# Media probing
FFPROBE_PATH = os.environ.get('FACEFORGE_FFPROBE', 'ffprobe')

# Logging
LOG_LEVEL = os.environ.get('FACEFORGE_LOG_LEVEL', 'INFO').upper()


def ensure_directories():
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
    AUDIO_DIR.mkdir(parents=True, exist_ok=True)
    RESULT_DIR.mkdir(parents=True, exist_ok=True)
