"""Interactive CLI for the intake agent."""

from __future__ import annotations

import argparse
import asyncio
import sys

from intake_agent.config.loader import resolve_bot_config
from intake_agent.config.settings import EngineSettings
from intake_agent.infrastructure.documents import DocumentIngestor, HttpDocumentFetcher
from intake_agent.infrastructure.llm_client import HttpLLMClient
from intake_agent.infrastructure.logging import setup_logging
from intake_agent.infrastructure.state_store import InMemoryStateStore
from intake_agent.orchestration.agent import Attachment, TurnProcessingError
from intake_agent.orchestration.runtime import AgentRuntime


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Intake agent interactive demo")
    p.add_argument("--config", "-c", required=True, help="Bot YAML file, or a directory of bot configs")
    p.add_argument("--bot", "-b", default=None, help="Bot slug when --config is a directory")
    p.add_argument("--session", "-s", default="cli-session", help="Session ID")
    return p.parse_args(argv)


def parse_attachment(line: str) -> tuple[str, Attachment | None]:
    """'/doc <url> [text]' and '/image <url> [text]' attach a file to the message."""
    for command, kind in (("/doc ", "document"), ("/image ", "image")):
        if line.startswith(command):
            rest = line[len(command):].strip()
            url, _, text = rest.partition(" ")
            return text.strip(), Attachment(url=url, kind=kind)
    return line, None


async def run_interactive(runtime: AgentRuntime, session_id: str) -> None:
    greeting = await runtime.start_session(session_id)
    print(greeting)
    print()
    while True:
        try:
            line = input("You: ").strip()
        except EOFError:
            break
        if not line:
            continue
        if line.lower() in ("quit", "exit", "q"):
            print("Goodbye.")
            break
        text, attachment = parse_attachment(line)
        try:
            result = await runtime.handle_turn(session_id, text, attachment)
        except TurnProcessingError as e:
            print(f"Agent: Sorry, {e}.")
            print()
            continue
        print(f"Agent: {result.reply}")
        print(f"  [phase={result.state.phase} missing={result.state.missing_info}]")
        print()
        if result.state.phase == "complete":
            break


async def _run(args: argparse.Namespace, settings: EngineSettings) -> int:
    config = resolve_bot_config(args.config, args.bot)
    llm = HttpLLMClient(
        base_url=settings.llm_base_url,
        model=config.llm_model or settings.chat_model,
        api_key=settings.openai_api_key,
        timeout=settings.request_timeout,
    )
    fetcher = HttpDocumentFetcher()
    try:
        runtime = AgentRuntime(
            config,
            llm,
            InMemoryStateStore(),
            settings=settings,
            document_ingestor=DocumentIngestor(fetcher),
        )
        await run_interactive(runtime, args.session)
    finally:
        await llm.aclose()
        await fetcher.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = EngineSettings()
    setup_logging(settings)
    try:
        return asyncio.run(_run(args, settings))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
