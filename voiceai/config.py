"""Voice.ai client configuration."""

import os
from dataclasses import dataclass

from voiceai.constants import BASE_URL, DEFAULT_TIMEOUT
from voiceai.errors import ErrorKind, VoiceAIError

API_KEY_ENV = "VOICE_AI_API_KEY"
BASE_URL_ENV = "VOICE_AI_BASE_URL"
TIMEOUT_ENV = "VOICE_AI_TIMEOUT"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client settings."""

    api_key: str
    base_url: str = BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise VoiceAIError(ErrorKind.AUTHENTICATION, "API key is required")
        if self.timeout <= 0:
            raise VoiceAIError(ErrorKind.VALIDATION, f"timeout must be positive, got {self.timeout!r}")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build config from environment variables.

        Call ``dotenv.load_dotenv()`` first to pick up a local .env file.
        """
        timeout_raw = os.environ.get(TIMEOUT_ENV, "")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            raise VoiceAIError(
                ErrorKind.VALIDATION,
                f"{TIMEOUT_ENV} must be a number of seconds, got {timeout_raw!r}",
            ) from None

        return cls(
            api_key=os.environ.get(API_KEY_ENV, ""),
            base_url=os.environ.get(BASE_URL_ENV) or BASE_URL,
            timeout=timeout,
        )
