"""Configuration loading for tweetcord.

All user-editable settings (followed users, destination channel, mentions,
stream behaviour, logging) live in a single JSON file for quick edits without
touching Python. Tokens stay in .env and are read by the client factory.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from dotenv import load_dotenv

from tweetcord.core.config import DEFAULT_CHANNEL, DEFAULT_COLOR, SubscriptionConfig, SubscriptionConfigBuilder

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# config.json sits next to pyproject.toml unless TWEETCORD_CONFIG says otherwise.
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")
CONFIG_ENV_VAR = "TWEETCORD_CONFIG"


@dataclass(frozen=True)
class Settings:
    subscription: SubscriptionConfig
    retry_delay: float = 0.0
    reconnect_on_drop: bool = True
    logging: dict = field(default_factory=dict)


def resolve_config_path(path: Optional[str] = None) -> str:
    if path:
        return path
    load_dotenv()
    return os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def parse_color(value: Union[str, int, None]) -> int:
    """Accept '#RRGGBB', '0xRRGGBB' or a plain integer."""

    if value is None or value == "":
        return DEFAULT_COLOR
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.startswith("#"):
        return int(text[1:], 16)
    return int(text, 0)


def build_subscription(raw: dict[str, Any], notifications: Optional[dict[str, Any]] = None) -> SubscriptionConfig:
    """Build the subscription value from the "twitter" block of config.json."""

    notifications = notifications or {}
    return (
        SubscriptionConfigBuilder()
        .add_users(raw.get("users", []) or [])
        .set_channel(raw.get("channel") or DEFAULT_CHANNEL)
        .tag_everyone(bool(raw.get("everyone", False)))
        .set_role(raw.get("role"))
        .set_banner(raw.get("banner"))
        .set_color(parse_color(notifications.get("embed_color")))
        .build()
    )


def load_settings(path: Optional[str] = None) -> Settings:
    config = _load_json_config(resolve_config_path(path))

    # Stream behaviour: retry_delay=0 retries setup immediately.
    _stream = config.get("stream", {})
    return Settings(
        subscription=build_subscription(config.get("twitter", {}), config.get("notifications", {})),
        retry_delay=float(_stream.get("retry_delay", 0)),
        reconnect_on_drop=bool(_stream.get("reconnect_on_drop", True)),
        logging=config.get("logging", {}),
    )
