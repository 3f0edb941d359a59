"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """chunkscribe settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        backend_url: Base URL of the reassembly / transcription backend.
        chunk_duration: Target length of one uploaded audio slice in seconds.
        task_poll_interval: Seconds between reassembly status polls.
        task_poll_max_attempts: Poll bound before giving up on a task.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Backend ---
    backend_url: str = "http://localhost:8000/api"
    http_timeout: float = 30.0
    upload_timeout: float = 900.0  # Single-file uploads can be large

    # --- Capture ---
    # 16-bit signed PCM; every slice is wrapped in its own WAV container
    chunk_duration: float = 15.0
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2
    chunk_mime_type: str = "audio/wav"
    audio_provider: str = "sounddevice"
    audio_device: str = ""  # Empty = system default input

    # --- Chunk upload ---
    chunk_upload_attempts: int = 3  # 1 disables retries
    chunk_retry_min_wait: float = 0.5
    chunk_retry_max_wait: float = 8.0
    require_complete_session: bool = False  # Refuse finalize on dropped chunks

    # --- Polling ---
    task_poll_interval: float = 2.0
    task_poll_max_attempts: int = 60
    transcription_poll_interval: float = 5.0
    transcription_poll_max_attempts: int = 60
    transcription_segment_duration: int = 60
    catalog_settle_delay: float = 2.0  # Let the backend write derived files

    # --- Application ---
    app_host: str = "0.0.0.0"
    app_port: int = 8100
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
