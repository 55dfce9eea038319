"""Pytest configuration - load .env before tests."""

import asyncio

import httpx
import pytest
from dotenv import load_dotenv

from voiceai.client import VoiceAIClient

# Load .env file for API keys
load_dotenv()

API_KEY = "test-key"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request it sees."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def run_api():
    """Run ``op(client)`` against a mocked API.

    Usage:
        result, transport = run_api(handler, lambda c: c.list_voices())
    """

    def run(handler, op, **client_kwargs):
        transport = RecordingTransport(handler)

        async def go():
            async with VoiceAIClient(API_KEY, transport=transport, **client_kwargs) as client:
                return await op(client)

        return asyncio.run(go()), transport

    return run
