"""
Runtime settings for Weekend Warrior.

Everything comes from environment variables (a local `.env` file is honoured).
Two settings matter:
  - GITHUB_TOKEN   -> required for stats lookups (GraphQL needs a token)
  - MONGODB_URI    -> enables the shared leaderboard; without it the service
                      still answers, with default rank fields
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

GITHUB_GRAPHQL = "https://api.github.com/graphql"


@dataclass(frozen=True)
class Settings:
    github_token: str = ""
    github_graphql_url: str = GITHUB_GRAPHQL
    github_timeout_seconds: int = 25
    mongodb_uri: str = ""
    mongodb_database: str = "weekend-warrior"
    mongodb_collection: str = "leaderboard"
    log_level: str = "INFO"
    port: int = 5000

    @property
    def token_configured(self) -> bool:
        return bool(self.github_token)

    @property
    def leaderboard_configured(self) -> bool:
        return bool(self.mongodb_uri)


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Settings:
    settings = Settings(
        github_token=os.getenv("GITHUB_TOKEN", "").strip(),
        github_graphql_url=os.getenv("GITHUB_GRAPHQL_URL", GITHUB_GRAPHQL).strip(),
        github_timeout_seconds=int(os.getenv("GITHUB_TIMEOUT_SECONDS", "25")),
        mongodb_uri=os.getenv("MONGODB_URI", "").strip(),
        mongodb_database=os.getenv("MONGODB_DATABASE", "weekend-warrior"),
        mongodb_collection=os.getenv("MONGODB_COLLECTION", "leaderboard"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "5000")),
    )
    if overrides:
        settings = replace(settings, **overrides)
    return settings
