"""Voice.ai text-to-speech client."""

from voiceai.client import SpeechOptions, SpeechStream, VoiceAIClient, VoiceUpdate
from voiceai.config import ClientConfig
from voiceai.constants import (
    SDK_VERSION,
    AudioFormat,
    Language,
    Model,
    VoiceStatus,
    VoiceVisibility,
)
from voiceai.errors import ErrorKind, VoiceAIError

__version__ = SDK_VERSION

__all__ = [
    "AudioFormat",
    "ClientConfig",
    "ErrorKind",
    "Language",
    "Model",
    "SpeechOptions",
    "SpeechStream",
    "VoiceAIClient",
    "VoiceAIError",
    "VoiceStatus",
    "VoiceUpdate",
    "VoiceVisibility",
]
