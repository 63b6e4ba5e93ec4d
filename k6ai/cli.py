"""
k6ai-call — send one prompt to the configured AI backend from a CI step.

Usage:
    k6ai-call --config '{"provider":"openai","apiKey":"sk-..."}' "Suggest load profiles"
    k6ai-call --system-file prompts/analyzer.txt --prompt-file prompt.txt \\
        --output .k6-config/ai-response.txt --optional

Without --config the AI_* environment variables (or .env) are used.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from k6ai.core.config import settings
from k6ai.core.logging import setup_logging
from k6ai.gateway import GatewayError, ProviderConfig, call_ai

logger = logging.getLogger("k6ai.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="k6ai-call",
        description="Send a prompt to an AI backend and print the response text.",
    )
    parser.add_argument("prompt", nargs="?", help="user prompt text")
    parser.add_argument("--prompt-file", type=Path, help="read the user prompt from a file")
    system = parser.add_mutually_exclusive_group()
    system.add_argument("--system", help="system prompt text")
    system.add_argument("--system-file", type=Path, help="read the system prompt from a file")
    parser.add_argument("--config", help="AI config as a JSON object (default: AI_* env settings)")
    parser.add_argument("--output", type=Path, help="write the response here instead of stdout")
    parser.add_argument(
        "--optional",
        action="store_true",
        help="exit 0 when the AI call fails, so the workflow continues without AI output",
    )
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    return parser


def load_config(raw: str | None) -> ProviderConfig | dict:
    """Parse the --config JSON, falling back to environment settings."""
    if raw is None:
        return ProviderConfig.from_settings(settings)
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("AI config JSON must be an object")
    return data


def _read_prompts(args: argparse.Namespace) -> tuple[str, str | None]:
    if args.prompt_file:
        user_prompt = args.prompt_file.read_text(encoding="utf-8")
    else:
        user_prompt = args.prompt or ""

    if args.system_file:
        system_prompt = args.system_file.read_text(encoding="utf-8")
    else:
        system_prompt = args.system
    return user_prompt, system_prompt


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        config = load_config(args.config)
    except ValueError as e:
        logger.error("Error parsing AI config JSON: %s", e)
        return 1

    try:
        user_prompt, system_prompt = _read_prompts(args)
    except OSError as e:
        logger.error("Error reading prompt file: %s", e)
        return 1
    if not user_prompt.strip():
        parser.error("a prompt is required (positional argument or --prompt-file)")

    try:
        text = asyncio.run(call_ai(config, user_prompt, system_prompt))
    except GatewayError as e:
        if args.optional:
            logger.warning("AI step failed (non-fatal, continuing without AI output): %s", e)
            return 0
        return 1

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("AI response saved to: %s", args.output)
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
