"""Tests for streaming speech and the stream-to-file pipeline.

Run: uv run pytest tests/test_streaming.py -v
"""

import asyncio
import json
import os
import threading
import time

import httpx
import pytest

import voiceai.client
from voiceai.client import SpeechStream
from voiceai.errors import ErrorKind, VoiceAIError

from conftest import API_KEY

CHUNKS = [b"ID3\x04\x00", b"\xff\xfb\x90\x00" * 64, b"frame-2", b"frame-3-final"]


def audio_stream(chunks, fail_after: int | None = None):
    """Handler serving ``chunks`` as a live body, optionally dropping the connection."""

    async def body():
        for i, chunk in enumerate(chunks):
            if fail_after is not None and i == fail_after:
                raise httpx.ReadError("connection reset by peer")
            yield chunk

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "audio/mpeg"}, content=body())

    return handler


def no_request(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected request: {request.method} {request.url}")


class TestStreamSpeech:
    """Live response body handling."""

    def test_chunks_in_order(self, run_api):
        async def collect(client):
            stream = await client.stream_speech("Long text")
            chunks = [chunk async for chunk in stream]
            return chunks, stream.closed

        (chunks, closed), transport = run_api(audio_stream(CHUNKS), collect)

        assert b"".join(chunks) == b"".join(CHUNKS)
        assert closed

    def test_request_shape(self, run_api):
        async def open_and_close(client):
            async with await client.stream_speech("Hi", voice_id="v1") as stream:
                return stream.status_code, stream.content_type

        (status, content_type), transport = run_api(audio_stream(CHUNKS), open_and_close)

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/tts/speech/stream"
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content)["voice_id"] == "v1"
        assert status == 200
        assert content_type == "audio/mpeg"

    def test_close_early_releases_connection(self, run_api):
        async def first_chunk(client):
            stream = await client.stream_speech("Hi")
            async with stream:
                async for chunk in stream:
                    break
            return chunk, stream

        (chunk, stream), _ = run_api(audio_stream(CHUNKS), first_chunk)

        assert chunk == CHUNKS[0]
        assert isinstance(stream, SpeechStream)
        assert stream.closed

    def test_connection_drop_mid_transfer(self, run_api):
        async def drain(client):
            stream = await client.stream_speech("Hi")
            return [chunk async for chunk in stream]

        with pytest.raises(VoiceAIError) as exc:
            run_api(audio_stream(CHUNKS, fail_after=2), drain)
        assert exc.value.kind is ErrorKind.GENERIC
        assert isinstance(exc.value.__cause__, httpx.ReadError)

    def test_error_status_is_generic(self, run_api):
        with pytest.raises(VoiceAIError) as exc:
            run_api(
                lambda r: httpx.Response(401, json={"error": "Invalid API key"}),
                lambda c: c.stream_speech("Hi"),
            )
        assert exc.value.kind is ErrorKind.GENERIC
        assert exc.value.code == 401
        assert exc.value.message == "Invalid API key"

    def test_error_status_without_json(self, run_api):
        with pytest.raises(VoiceAIError) as exc:
            run_api(lambda r: httpx.Response(500, text="<html>oops</html>"), lambda c: c.stream_speech("Hi"))
        assert exc.value.code == 500
        assert exc.value.message == "Request failed"

    def test_empty_text(self, run_api):
        with pytest.raises(VoiceAIError) as exc:
            run_api(no_request, lambda c: c.stream_speech(""))
        assert exc.value.kind is ErrorKind.VALIDATION

    def test_http_base_url_rejected(self, run_api):
        with pytest.raises(VoiceAIError) as exc:
            run_api(no_request, lambda c: c.stream_speech("Hi"), base_url="http://dev.voice.ai")
        assert exc.value.kind is ErrorKind.VALIDATION

    def test_undecodable_chunk_is_generic(self, run_api):
        def handler(request):
            return httpx.Response(
                200,
                headers={"content-type": "audio/mpeg", "content-encoding": "gzip"},
                content=b"not gzip at all",
            )

        async def drain(client):
            stream = await client.stream_speech("Hi")
            return [chunk async for chunk in stream]

        with pytest.raises(VoiceAIError) as exc:
            run_api(handler, drain)
        assert exc.value.kind is ErrorKind.GENERIC
        assert isinstance(exc.value.__cause__, httpx.DecodingError)

    def test_second_iteration_raises(self, run_api):
        async def drain_twice(client):
            stream = await client.stream_speech("Hi")
            first = [chunk async for chunk in stream]
            with pytest.raises(VoiceAIError) as exc:
                [chunk async for chunk in stream]
            return first, exc.value

        (first, error), _ = run_api(audio_stream(CHUNKS), drain_twice)

        assert b"".join(first) == b"".join(CHUNKS)
        assert error.kind is ErrorKind.VALIDATION

    def test_connect_timeout(self, run_api):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(VoiceAIError) as exc:
            run_api(handler, lambda c: c.stream_speech("Hi"))
        assert exc.value.kind is ErrorKind.TIMEOUT


class TestStreamSpeechToFile:
    """Piping the stream into a file."""

    def test_writes_all_chunks(self, run_api, tmp_path):
        output = tmp_path / "speech.mp3"

        result, _ = run_api(audio_stream(CHUNKS), lambda c: c.stream_speech_to_file(output, "Long text"))

        assert result == output
        assert output.read_bytes() == b"".join(CHUNKS)

    def test_accepts_str_path(self, run_api, tmp_path):
        output = str(tmp_path / "speech.mp3")

        result, _ = run_api(audio_stream(CHUNKS), lambda c: c.stream_speech_to_file(output, "Hi"))

        assert result == output
        with open(output, "rb") as f:
            assert f.read() == b"".join(CHUNKS)

    def test_truncates_existing_file(self, run_api, tmp_path):
        output = tmp_path / "speech.mp3"
        output.write_bytes(b"x" * 10_000)

        run_api(audio_stream([b"short"]), lambda c: c.stream_speech_to_file(output, "Hi"))

        assert output.read_bytes() == b"short"

    def test_server_error_leaves_no_file(self, run_api, tmp_path):
        output = tmp_path / "speech.mp3"

        with pytest.raises(VoiceAIError) as exc:
            run_api(
                lambda r: httpx.Response(500, json={"error": "Synthesis failed"}),
                lambda c: c.stream_speech_to_file(output, "Hi"),
            )
        assert exc.value.kind is ErrorKind.GENERIC
        assert exc.value.code == 500
        assert not output.exists()

    def test_connection_drop_keeps_partial_file(self, run_api, tmp_path):
        output = tmp_path / "speech.mp3"

        with pytest.raises(VoiceAIError):
            run_api(audio_stream(CHUNKS, fail_after=2), lambda c: c.stream_speech_to_file(output, "Hi"))

        assert output.read_bytes() == b"".join(CHUNKS[:2])

    def test_unwritable_destination(self, run_api, tmp_path):
        output = tmp_path / "missing-dir" / "speech.mp3"

        with pytest.raises(FileNotFoundError):
            run_api(audio_stream(CHUNKS), lambda c: c.stream_speech_to_file(output, "Hi"))

    def test_disk_flush_does_not_block_event_loop(self, run_api, tmp_path, monkeypatch):
        output = tmp_path / "speech.mp3"
        flushing = threading.Event()
        real_fsync = os.fsync

        def slow_fsync(fd):
            flushing.set()
            time.sleep(0.3)
            real_fsync(fd)
            flushing.clear()

        monkeypatch.setattr(voiceai.client.os, "fsync", slow_fsync)

        async def write_while_ticking(client):
            task = asyncio.ensure_future(client.stream_speech_to_file(output, "Hi"))
            ticks = 0
            while not task.done():
                if flushing.is_set():
                    ticks += 1
                await asyncio.sleep(0.01)
            return await task, ticks

        (result, ticks), _ = run_api(audio_stream(CHUNKS), write_while_ticking)

        assert result == output
        assert output.read_bytes() == b"".join(CHUNKS)
        assert ticks > 0
