"""Application entry point for the tweetcord bridge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

import discord
from art import tprint
from dotenv import load_dotenv

from tweetcord import settings as settings_module
from tweetcord.adapters.discord_directory import DiscordCommunityDirectory
from tweetcord.adapters.discord_notifier import DiscordNotifier
from tweetcord.adapters.twitter_stream import TwitterFilterStream
from tweetcord.client import (
    DISCORD_TOKEN_VAR,
    TWITTER_TOKEN_VAR,
    build_discord_client,
    build_twitter_stream,
    require_token,
)
from tweetcord.core.context import BridgeContext
from tweetcord.core.dispatcher import NotificationDispatcher
from tweetcord.core.rules_engine import RuleReconciler
from tweetcord.core.session import ResilientStreamSession
from tweetcord.settings import Settings

NAME = "TWEETCORD"
FONT = "tarty-1"

SECRET_MASK = "[redacted]"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
# Always masked unless redaction is switched off explicitly.
TOKEN_ENV_VARS = (TWITTER_TOKEN_VAR, DISCORD_TOKEN_VAR)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _TokenMaskingFormatter(logging.Formatter):
    """Masks token values anywhere in the rendered record, tracebacks included."""

    def __init__(self, tokens: Iterable[str], fmt: str = LOG_FORMAT, datefmt: Optional[str] = LOG_DATEFMT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first, so a token that contains another is masked whole.
        self._tokens = sorted({token for token in tokens if token}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for token in self._tokens:
            message = message.replace(token, SECRET_MASK)
        return message


def _token_values(redact_cfg: Optional[dict]) -> list[str]:
    """Values of the bridge tokens plus any extra variables named under `env`."""

    redact_cfg = redact_cfg or {}
    if not redact_cfg.get("enabled", True):
        return []
    names = list(TOKEN_ENV_VARS)
    names.extend(name for name in redact_cfg.get("env", []) if name not in names)
    return [value for value in (os.getenv(name) for name in names) if value]


def _rotating_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/tweetcord.log")
    if not os.path.isabs(path):
        path = os.path.join(settings_module.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _apply_logger_levels(levels: dict) -> None:
    """Per-library overrides, e.g. {"discord.gateway": "WARNING"}."""

    for name, level_name in levels.items():
        logging.getLogger(name).setLevel(str(level_name).upper())


def _configure_logging(config: Optional[dict]) -> None:
    config = config or {}
    if not config.get("enabled", False):
        return

    # Tokens may only exist in .env; load it before collecting their values.
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _TokenMaskingFormatter(_token_values(config.get("redact")))

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_rotating_file_handler(file_cfg))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)
    _apply_logger_levels(config.get("levels", {}))


def build_context(settings: Settings, stream: TwitterFilterStream, client: discord.Client) -> BridgeContext:
    return BridgeContext(
        config=settings.subscription,
        rules=stream,
        stream=stream,
        directory=DiscordCommunityDirectory(client),
        notifier=DiscordNotifier(client),
    )


def build_session(settings: Settings, context: BridgeContext) -> ResilientStreamSession:
    dispatcher = NotificationDispatcher(context)
    return ResilientStreamSession(
        context,
        RuleReconciler(context),
        dispatcher.dispatch,
        retry_delay=settings.retry_delay,
        reconnect_on_drop=settings.reconnect_on_drop,
    )


def _run(config_path: Optional[str]) -> None:
    _print_banner()
    settings = settings_module.load_settings(config_path)
    _configure_logging(settings.logging)
    logger = logging.getLogger(__name__)

    logger.info("Starting tweetcord")
    logger.info("%s users are configured", len(settings.subscription.users))

    # Both tokens are checked before Discord or Twitter is contacted.
    stream = build_twitter_stream()
    discord_token = require_token(DISCORD_TOKEN_VAR)
    client = build_discord_client()

    context = build_context(settings, stream, client)
    session = build_session(settings, context)
    session_tasks: set[asyncio.Task] = set()

    # on_ready fires again after every gateway resume; the session starts once.
    @client.event
    async def on_ready() -> None:
        logger.info("Logged in to Discord as %s", client.user)
        if session_tasks:
            return
        task = asyncio.create_task(session.run_forever())
        session_tasks.add(task)

    try:
        client.run(discord_token, log_handler=None)
    finally:
        session.stop()


def _list_rules() -> None:
    stream = build_twitter_stream()

    async def _run_list() -> None:
        rules = await stream.list_rules()
        if not rules:
            print("No active stream rules.")
            return
        for index, rule in enumerate(rules, start=1):
            print(f"{index}. {rule.id} | {rule.value} | {rule.tag or '-'}")

    asyncio.run(_run_list())


def _sync_rules(config_path: Optional[str]) -> None:
    settings = settings_module.load_settings(config_path)
    _configure_logging(settings.logging)
    stream = build_twitter_stream()
    # Rule sync never touches Discord, so no directory or notifier is wired.
    context = BridgeContext(config=settings.subscription, rules=stream, stream=stream)

    rules = asyncio.run(RuleReconciler(context).reconcile())
    print(f"Synchronized {len(rules)} stream rules.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="tweetcord")
    parser.add_argument("--config", help="Path to config.json (defaults to $TWEETCORD_CONFIG)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bridge")
    subparsers.add_parser("rules", help="List the rules currently active on the Twitter stream")
    subparsers.add_parser("sync", help="Replace the active stream rules with the configured users and exit")

    args = parser.parse_args(argv)
    if args.command == "rules":
        _list_rules()
        return
    if args.command == "sync":
        _sync_rules(args.config)
        return
    _run(args.config)


if __name__ == "__main__":
    main()
