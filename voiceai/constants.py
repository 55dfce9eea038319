"""Voice.ai API constants."""

from enum import Enum

SDK_VERSION = "1.1.4"

# dev.voice.ai is the production API domain
BASE_URL = "https://dev.voice.ai"
API_VERSION = "v1"
DEFAULT_TIMEOUT = 60.0


class AudioFormat(str, Enum):
    """Output audio formats accepted by the speech endpoints."""

    # Basic formats (32kHz)
    MP3 = "mp3"
    WAV = "wav"
    PCM = "pcm"

    # Telephony
    ALAW_8000 = "alaw_8000"
    ULAW_8000 = "ulaw_8000"

    MP3_22050_32 = "mp3_22050_32"
    MP3_24000_48 = "mp3_24000_48"
    MP3_44100_32 = "mp3_44100_32"
    MP3_44100_64 = "mp3_44100_64"
    MP3_44100_96 = "mp3_44100_96"
    MP3_44100_128 = "mp3_44100_128"
    MP3_44100_192 = "mp3_44100_192"

    OPUS_48000_32 = "opus_48000_32"
    OPUS_48000_64 = "opus_48000_64"
    OPUS_48000_96 = "opus_48000_96"
    OPUS_48000_128 = "opus_48000_128"
    OPUS_48000_192 = "opus_48000_192"

    PCM_8000 = "pcm_8000"
    PCM_16000 = "pcm_16000"
    PCM_22050 = "pcm_22050"
    PCM_24000 = "pcm_24000"
    PCM_32000 = "pcm_32000"
    PCM_44100 = "pcm_44100"
    PCM_48000 = "pcm_48000"

    WAV_16000 = "wav_16000"
    WAV_22050 = "wav_22050"
    WAV_24000 = "wav_24000"


class Model(str, Enum):
    """TTS model identifiers."""

    TTS_V1_LATEST = "voiceai-tts-v1-latest"
    TTS_V1_2025_12_19 = "voiceai-tts-v1-2025-12-19"
    MULTILINGUAL_V1_LATEST = "voiceai-tts-multilingual-v1-latest"
    MULTILINGUAL_V1_2025_01_14 = "voiceai-tts-multilingual-v1-2025-01-14"


class Language(str, Enum):
    """Supported language codes."""

    ENGLISH = "en"
    SPANISH = "es"
    FRENCH = "fr"
    GERMAN = "de"
    ITALIAN = "it"
    PORTUGUESE = "pt"
    POLISH = "pl"
    RUSSIAN = "ru"
    DUTCH = "nl"
    SWEDISH = "sv"
    CATALAN = "ca"


class VoiceVisibility(str, Enum):
    """Who can use a voice."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class VoiceStatus(str, Enum):
    """Processing state of a cloned voice."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    AVAILABLE = "AVAILABLE"
    FAILED = "FAILED"
