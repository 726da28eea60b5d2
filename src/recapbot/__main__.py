# __main__.py
"""Run one recap dispatch.

    python -m recapbot '{"source_channel_ids": ["123"], "timeframe": "1 day"}'
    python -m recapbot --payload-file event.json
    echo '{"source_channel_id": "123", "timeframe": 2}' | python -m recapbot
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from .dispatch import DispatchController, DispatchRequest
from .errors import DispatchFailed, InvalidInput
from .session import SessionHandle
from .settings import get_settings

logger = logging.getLogger("recapbot")


def _read_payload(args: argparse.Namespace) -> Any:
    if args.payload_file:
        with open(args.payload_file, encoding="utf-8") as fh:
            raw = fh.read()
    elif args.payload:
        raw = args.payload
    else:
        raw = sys.stdin.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"Payload is not valid JSON: {exc}") from exc


async def run(request: DispatchRequest, token: str, session: Optional[SessionHandle] = None) -> str:
    """Start (or reuse) a Discord session and dispatch *request* through it."""
    owns_session = session is None
    session = session or SessionHandle()
    if owns_session:
        await session.start(token)
    try:
        await session.await_ready()
        controller = DispatchController.from_settings(session, get_settings())
        return await controller.dispatch(request)
    finally:
        if owns_session:
            await session.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="recapbot",
        description="Summarize recent Discord channel activity and post the result.",
    )
    parser.add_argument("payload", nargs="?", help="JSON payload (read from stdin if omitted)")
    parser.add_argument("--payload-file", help="Read the JSON payload from this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.error("DISCORD_TOKEN is not set")
        return 2

    try:
        payload = _read_payload(args)
        logger.info("Event: %s", payload)
        request = DispatchRequest.from_payload(payload)
        status = asyncio.run(run(request, token))
    except InvalidInput as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    except DispatchFailed as exc:
        logger.error("%s", exc)
        return 1
    except Exception as e:
        logger.exception("Recap run failed: %s", e)
        return 1

    print(status)
    return 0


if __name__ == "__main__":
    sys.exit(main())
