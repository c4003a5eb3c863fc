from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from dotenv import load_dotenv


# Get the path to the .env file
CONFIG_DIR = Path(__file__).resolve().parent
# Assuming .env is in the project root (two levels up from app/core)
PROJECT_ROOT = CONFIG_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / '.env'

# Load environment variables from .env file
load_dotenv(ENV_FILE_PATH)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    DEBUG_MODE: bool = False
    LOG_JSON: bool = False

    # Generative-text backend ("gemini" or "groq")
    LLM_PROVIDER: str = "gemini"
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash-001"
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TEMPERATURE: float = 0.2

    # Timeout Configuration (seconds)
    LLM_REQUEST_TIMEOUT: float = 30.0
    PERSISTENCE_TIMEOUT: float = 15.0

    # Retry Configuration (transient upstream errors only)
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 20.0

    # Document store
    DATABASE_URL: str = "sqlite+aiosqlite:///./interviews.db"

    # Voice call configuration
    VAPI_WORKFLOW_ID: str = ""
    DISCONNECT_GRACE_SECONDS: float = 2.0

    # Interview generation limits
    DEFAULT_QUESTION_AMOUNT: int = 5
    MAX_QUESTION_AMOUNT: int = 20

    CORS_ORIGINS: list[str] = ["*"]


# Initialize settings
settings = Settings()
