"""Voice.ai text-to-speech API client."""

import asyncio
import logging
import mimetypes
import os
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, BinaryIO, Iterator
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from voiceai.config import ClientConfig
from voiceai.constants import (
    API_VERSION,
    BASE_URL,
    DEFAULT_TIMEOUT,
    SDK_VERSION,
    AudioFormat,
    Language,
    Model,
    VoiceVisibility,
)
from voiceai.errors import (
    ErrorKind,
    VoiceAIError,
    error_from_response,
    error_from_stream_response,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"voiceai-python/{SDK_VERSION}"


# ─── Request models ────────────────────────────────────────────────────────


class SpeechOptions(BaseModel):
    """Speech generation parameters."""

    model_config = ConfigDict(extra="forbid")

    text: str = Field(description="Text to convert to speech")
    voice_id: str | None = Field(
        default=None,
        description="Voice ID to use; the API default voice when omitted",
    )
    audio_format: AudioFormat | str = Field(default=AudioFormat.MP3)
    temperature: float = Field(default=1.0, ge=0, le=2, description="Sampling temperature")
    top_p: float = Field(default=0.8, ge=0, le=1, description="Nucleus sampling")
    model: Model | str | None = None
    language: Language | str = Field(default=Language.ENGLISH)


class VoiceUpdate(BaseModel):
    """Voice metadata changes."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    voice_visibility: VoiceVisibility | None = None


def _validated(model: type[BaseModel], **fields: Any) -> dict:
    """Validate fields against a model and return the JSON body."""
    try:
        return model(**fields).model_dump(mode="json", exclude_none=True)
    except ValidationError as e:
        raise VoiceAIError(
            ErrorKind.VALIDATION,
            f"Invalid {model.__name__} fields",
            details=e.errors(include_url=False, include_context=False),
        ) from None


def _speech_body(text: str, options: dict[str, Any]) -> dict:
    if not text:
        raise VoiceAIError(ErrorKind.VALIDATION, "Text is required")
    return _validated(SpeechOptions, text=text, **options)


def _voice_path(voice_id: str) -> str:
    if not voice_id:
        raise VoiceAIError(ErrorKind.VALIDATION, "Voice ID is required")
    return f"/tts/voice/{quote(voice_id, safe='')}"


def _query_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """Drop unset params and unwrap enum values."""
    if not params:
        return {}
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in params.items()
        if value is not None
    }


@contextmanager
def _transport_errors() -> Iterator[None]:
    """Translate httpx transport failures into VoiceAIError."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise VoiceAIError(ErrorKind.TIMEOUT, "Request timeout", code="TIMEOUT") from e
    except httpx.RequestError as e:
        raise VoiceAIError(ErrorKind.GENERIC, f"Request failed: {e}") from e


def _flush_to_disk(f: BinaryIO) -> None:
    f.flush()
    os.fsync(f.fileno())


# ─── Streaming ─────────────────────────────────────────────────────────────


class SpeechStream:
    """Live audio body of a streaming speech response.

    Iterate it once with ``async for``; chunks arrive in the order the server
    sends them. The connection is released when iteration ends, fails, or
    ``aclose()`` is called, so wrap partial reads in ``async with``.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", "")

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_bytes()

    async def iter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        """Yield audio chunks until the server closes the stream."""
        if self._response.is_closed or self._response.is_stream_consumed:
            raise VoiceAIError(ErrorKind.VALIDATION, "Speech stream has already been consumed")
        try:
            with _transport_errors():
                async for chunk in self._response.aiter_bytes(chunk_size):
                    yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Close the response and release the connection."""
        await self._response.aclose()

    async def __aenter__(self) -> "SpeechStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


# ─── Client ────────────────────────────────────────────────────────────────


class VoiceAIClient:
    """Async Voice.ai API client.

    Every call makes a single request with no retries. Failures raise
    VoiceAIError; check ``kind`` to decide whether to retry.

    Usage:
        async with VoiceAIClient("your-api-key") as client:
            audio = await client.generate_speech("Hello, world!")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig(
            api_key=api_key or "",
            base_url=base_url,
            timeout=timeout,
        )
        self._http = httpx.AsyncClient(timeout=self.config.timeout, transport=transport)

    @classmethod
    def from_env(cls, transport: httpx.AsyncBaseTransport | None = None) -> "VoiceAIClient":
        """Create a client from VOICE_AI_* environment variables."""
        return cls(config=ClientConfig.from_env(), transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "VoiceAIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ─── Transport ─────────────────────────────────────────────────────────

    def _build_url(self, endpoint: str) -> httpx.URL:
        """Resolve an endpoint under the versioned API prefix."""
        try:
            url = httpx.URL(self.config.base_url).join(f"/api/{API_VERSION}{endpoint}")
        except httpx.InvalidURL as e:
            raise VoiceAIError(ErrorKind.VALIDATION, f"Invalid base_url: {e}") from None

        if url.scheme != "https":
            raise VoiceAIError(ErrorKind.VALIDATION, "Only https base_url is supported")
        return url

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "User-Agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        body: dict | bytes | None = None,
        binary: bool = False,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make an authenticated, fully buffered API request.

        Dict bodies are sent as JSON. Bytes bodies are sent verbatim, with the
        content type taken from ``headers``.

        Returns:
            bytes for audio (or when ``binary`` is set), otherwise the parsed
            JSON value, or the raw text when the body is not JSON
        """
        url = self._build_url(endpoint)
        request = self._http.build_request(
            method,
            url,
            params=_query_params(params),
            headers=self._headers(headers),
            content=body if isinstance(body, bytes) else None,
            json=body if isinstance(body, dict) else None,
        )

        logger.debug("%s %s", method, request.url.path)
        try:
            with _transport_errors():
                response = await asyncio.wait_for(
                    self._http.send(request),
                    timeout=self.config.timeout,
                )
        except asyncio.TimeoutError as e:
            raise VoiceAIError(ErrorKind.TIMEOUT, "Request timeout", code="TIMEOUT") from e
        logger.debug("%s %s -> %d", method, request.url.path, response.status_code)

        if response.status_code >= 400:
            raise error_from_response(response.status_code, response.content)

        content_type = response.headers.get("content-type", "")
        if binary or content_type.startswith("audio/"):
            return response.content

        try:
            return response.json()
        except ValueError:
            return response.text

    async def _stream_request(
        self,
        method: str,
        endpoint: str,
        body: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> SpeechStream:
        """Make an authenticated request and return the live response body.

        Error responses are read in full and raised; successful ones are
        handed back unread.
        """
        url = self._build_url(endpoint)
        request = self._http.build_request(
            method,
            url,
            headers=self._headers(headers),
            json=body,
        )

        logger.debug("%s %s (stream)", method, request.url.path)
        with _transport_errors():
            response = await self._http.send(request, stream=True)
        logger.debug("%s %s -> %d (stream)", method, request.url.path, response.status_code)

        if response.status_code >= 400:
            try:
                with _transport_errors():
                    content = await response.aread()
            finally:
                await response.aclose()
            raise error_from_stream_response(response.status_code, content)

        return SpeechStream(response)

    # ─── Voice management ──────────────────────────────────────────────────

    async def list_voices(
        self,
        limit: int = 10,
        offset: int = 0,
        visibility: VoiceVisibility | str | None = None,
    ) -> Any:
        """List available voices.

        Args:
            limit: Max voices to return
            offset: Pagination offset
            visibility: Filter by PUBLIC or PRIVATE
        """
        return await self._request(
            "GET",
            "/tts/voices",
            params={"limit": limit, "offset": offset, "visibility": visibility},
        )

    async def get_voice(self, voice_id: str) -> Any:
        """Get voice details."""
        return await self._request("GET", _voice_path(voice_id))

    async def update_voice(
        self,
        voice_id: str,
        name: str | None = None,
        voice_visibility: VoiceVisibility | str | None = None,
    ) -> Any:
        """Update a voice's name or visibility."""
        path = _voice_path(voice_id)
        body = _validated(VoiceUpdate, name=name, voice_visibility=voice_visibility)
        return await self._request("PATCH", path, body=body)

    async def delete_voice(self, voice_id: str) -> Any:
        """Delete a voice."""
        return await self._request("DELETE", _voice_path(voice_id))

    async def clone_voice(
        self,
        file: bytes | str | Path,
        name: str | None = None,
        voice_visibility: VoiceVisibility | str | None = None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> Any:
        """Clone a voice from an audio sample.

        Args:
            file: Audio bytes, or a path to an audio file
            name: Name for the new voice
            voice_visibility: PUBLIC or PRIVATE
            filename: Upload filename (defaults to the file's name)
            content_type: Audio MIME type (guessed from the filename)
        """
        if isinstance(file, (str, Path)):
            path = Path(file)
            audio = path.read_bytes()
            filename = filename or path.name
        else:
            audio = file
        if not audio:
            raise VoiceAIError(ErrorKind.VALIDATION, "Audio file is required")

        filename = filename or "sample.mp3"
        content_type = (
            content_type
            or mimetypes.guess_type(filename)[0]
            or "application/octet-stream"
        )
        fields = _query_params({"name": name, "voice_visibility": voice_visibility})

        # Encode the multipart form up front and send it as a raw body
        endpoint = "/tts/clone-voice"
        form = httpx.Request(
            "POST",
            self._build_url(endpoint),
            data=fields,
            files={"file": (filename, audio, content_type)},
        )
        return await self._request(
            "POST",
            endpoint,
            body=form.read(),
            headers={"Content-Type": form.headers["Content-Type"]},
        )

    # ─── Speech generation ─────────────────────────────────────────────────

    async def generate_speech(self, text: str, **options: Any) -> bytes:
        """Generate speech from text.

        Args:
            text: Text to convert to speech
            **options: voice_id, audio_format, temperature, top_p, model,
                language (see SpeechOptions)

        Returns:
            Audio data
        """
        body = _speech_body(text, options)
        return await self._request("POST", "/tts/speech", body=body, binary=True)

    async def generate_speech_to_file(
        self,
        output_path: str | Path,
        text: str,
        **options: Any,
    ) -> str | Path:
        """Generate speech and save it to a file."""
        audio = await self.generate_speech(text, **options)
        Path(output_path).write_bytes(audio)
        return output_path

    async def stream_speech(self, text: str, **options: Any) -> SpeechStream:
        """Generate speech as a live stream, for long texts."""
        body = _speech_body(text, options)
        return await self._stream_request("POST", "/tts/speech/stream", body=body)

    async def stream_speech_to_file(
        self,
        output_path: str | Path,
        text: str,
        **options: Any,
    ) -> str | Path:
        """Stream speech into a file.

        Returns once the file is flushed to disk. On failure the partially
        written file is left in place.
        """
        stream = await self.stream_speech(text, **options)
        async with stream:
            # File I/O runs in worker threads, one call at a time
            f = await asyncio.to_thread(open, output_path, "wb")
            try:
                async for chunk in stream:
                    await asyncio.to_thread(f.write, chunk)
                await asyncio.to_thread(_flush_to_disk, f)
            finally:
                await asyncio.to_thread(f.close)
        return output_path

    # ─── Utilities ─────────────────────────────────────────────────────────

    async def validate_api_key(self) -> bool:
        """Check whether the API key is accepted."""
        try:
            await self.list_voices(limit=1)
        except VoiceAIError as e:
            if e.kind is ErrorKind.AUTHENTICATION:
                return False
            raise
        return True

    async def get_first_voices(self, count: int = 10) -> list[dict]:
        """Get the first ``count`` voices."""
        response = await self.list_voices(limit=count)
        if not isinstance(response, dict):
            return []
        return response.get("voices") or []
