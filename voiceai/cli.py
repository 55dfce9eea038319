#!/usr/bin/env python3
"""Voice.ai TTS command line.

Run: uv run voice-ai-tts --text "Hello!" --voice ellie --output hello.mp3
     uv run voice-ai-tts --text "Long text..." --voice oliver --stream
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from voiceai.client import VoiceAIClient
from voiceai.config import API_KEY_ENV, ClientConfig
from voiceai.errors import VoiceAIError

VOICES_FILE_ENV = "VOICE_AI_VOICES_FILE"
DEFAULT_VOICES_FILE = Path(__file__).with_name("voices.json")
DEFAULT_OUTPUT = "output.mp3"


def load_voice_map(path: Path | None = None) -> dict[str, dict]:
    """Load the voice name -> voice entry table."""
    if path is None:
        path = Path(os.environ.get(VOICES_FILE_ENV) or DEFAULT_VOICES_FILE)
    data = json.loads(path.read_text())
    return {name.lower(): entry for name, entry in data.get("voices", {}).items()}


def list_voice_names(voice_map: dict[str, dict]) -> str:
    return ", ".join(sorted(voice_map)) or "(none configured)"


def resolve_voice_id(voice: str | None, voice_map: dict[str, dict]) -> str | None:
    """Resolve a voice name to its ID, or None for the API default."""
    if not voice:
        return None
    entry = voice_map.get(voice.lower())
    if not entry:
        raise ValueError(
            f'Unknown voice "{voice}". Available voices: {list_voice_names(voice_map)}'
        )
    return entry["voice_id"]


def build_parser(voice_map: dict[str, dict]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voice-ai-tts",
        description="Voice.ai text-to-speech",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Environment:\n  {API_KEY_ENV}  Your Voice.ai API key (or set it in .env)",
    )
    parser.add_argument("--text", required=True, help="Text to convert to speech")
    parser.add_argument("--voice", help=f"Voice name: {list_voice_names(voice_map)}")
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Output file (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Use streaming mode (good for long texts)",
    )
    return parser


async def synthesize(
    config: ClientConfig,
    text: str,
    output: str,
    voice_id: str | None = None,
    stream: bool = False,
) -> str:
    """Generate speech into ``output``."""
    async with VoiceAIClient(config=config) as client:
        if stream:
            await client.stream_speech_to_file(output, text, voice_id=voice_id)
        else:
            await client.generate_speech_to_file(output, text, voice_id=voice_id)
    return output


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    load_dotenv()

    voice_map = load_voice_map()
    args = build_parser(voice_map).parse_args(argv)

    if not os.environ.get(API_KEY_ENV):
        print(
            f"Error: {API_KEY_ENV} is required (set it as an environment variable or in .env)",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        voice_id = resolve_voice_id(args.voice, voice_map)
        config = ClientConfig.from_env()
    except (ValueError, VoiceAIError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Generating speech{' (streaming)' if args.stream else ''}...", flush=True)

    try:
        asyncio.run(synthesize(config, args.text, args.output, voice_id, args.stream))
    except (VoiceAIError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Saved to {args.output}", flush=True)


if __name__ == "__main__":
    main()
