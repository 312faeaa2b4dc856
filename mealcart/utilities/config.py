"""Configuration management for the MealCart shopping list engine."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


# Normalizer (external text normalization collaborator)
OPENAI_API_KEY: Final[str] = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL: Final[str] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
NORMALIZER_MODE: Final[str] = os.getenv('NORMALIZER_MODE', 'auto').strip().lower()
NORMALIZER_TIMEOUT_SECONDS: Final[float] = float(os.getenv('NORMALIZER_TIMEOUT_SECONDS', '20'))

# Persistence API (client side)
API_BASE_URL: Final[str] = os.getenv('API_BASE_URL', 'http://localhost:8000')
REQUEST_TIMEOUT_SECONDS: Final[float] = float(os.getenv('REQUEST_TIMEOUT_SECONDS', '10'))
CHECK_ROLLBACK_ON_FAILURE: Final[bool] = _flag('CHECK_ROLLBACK_ON_FAILURE', 'true')

# Persistence API (server side); empty means any bearer token is accepted
API_TOKENS: Final[frozenset[str]] = frozenset(
    t.strip() for t in os.getenv('API_TOKENS', '').split(',') if t.strip()
)

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = _flag('DEBUG', 'false')
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO').upper()

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('DATA_DIR', str(BASE_DIR / 'data'))).resolve()
