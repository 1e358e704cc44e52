"""
GitHub GraphQL fetcher for a user's 2025 contribution data.

One query per lookup: the 2025 contribution calendar plus the 20 most recently
pushed owned repositories, each with up to 100 default-branch commits.

Failures are classified into an ErrorKind where they are detected (HTTP status,
GraphQL error type), so callers never need to inspect message text.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from config import GITHUB_GRAPHQL

logger = logging.getLogger(__name__)

YEAR = 2025
RANGE_FROM = "2025-01-01T00:00:00Z"
RANGE_TO = "2025-12-31T23:59:59Z"

USER_AGENT = "weekend-warrior/1.0"
AVATAR_BASE = "https://github.com"


# -----------------------------
# Errors
# -----------------------------
class ErrorKind(enum.Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    MISCONFIGURED = "misconfigured"
    UNKNOWN = "unknown"


class GitHubAPIError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


# -----------------------------
# GraphQL query
# -----------------------------
WEEKEND_QUERY = """
query($username:String!, $from:DateTime!, $to:DateTime!) {
  user(login:$username) {
    login
    contributionsCollection(from:$from, to:$to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
            weekday
          }
        }
      }
    }
    repositories(first:20, orderBy:{field:PUSHED_AT, direction:DESC}, ownerAffiliations:OWNER) {
      nodes {
        name
        primaryLanguage { name color }
        defaultBranchRef {
          target {
            ... on Commit {
              history(first:100) {
                totalCount
                nodes {
                  committedDate
                  author { user { login } }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


def _kind_for_graphql_errors(errors: List[Dict[str, Any]]) -> ErrorKind:
    first = errors[0] if errors else {}
    etype = str(first.get("type") or "").upper()
    if etype == "NOT_FOUND":
        return ErrorKind.NOT_FOUND
    if etype == "RATE_LIMITED":
        return ErrorKind.RATE_LIMITED
    return ErrorKind.UNKNOWN


# -----------------------------
# Client
# -----------------------------
@dataclass(frozen=True)
class GitHubClient:
    token: str = ""
    graphql_url: str = GITHUB_GRAPHQL
    timeout_seconds: int = 25

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        if not self.token:
            raise GitHubAPIError(
                ErrorKind.MISCONFIGURED,
                "GitHub token not configured on server. Set GITHUB_TOKEN.",
            )

        payload = {"query": query, "variables": variables}
        try:
            resp = requests.post(self.graphql_url, headers=self._headers(), json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise GitHubAPIError(ErrorKind.UNKNOWN, f"GitHub request failed: {e}") from e

        if resp.status_code == 401:
            raise GitHubAPIError(ErrorKind.MISCONFIGURED, "GitHub API authentication failed. Invalid token.")
        if resp.status_code in (403, 429):
            raise GitHubAPIError(ErrorKind.RATE_LIMITED, "GitHub API rate limit exceeded or access forbidden.")
        if resp.status_code >= 400:
            raise GitHubAPIError(ErrorKind.UNKNOWN, f"GitHub GraphQL error {resp.status_code}: {resp.text[:600]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GitHubAPIError(ErrorKind.UNKNOWN, "Invalid JSON response from GitHub") from e

        errors = data.get("errors") or []
        if errors:
            # Only the first error decides the kind; keep the message short
            raise GitHubAPIError(_kind_for_graphql_errors(errors), f"GitHub GraphQL errors: {errors[:3]}")
        return data.get("data") or {}

    def fetch_contributions(self, username: str) -> Dict[str, Any]:
        """
        Returns the raw GraphQL `user` node for `username` covering 2025.
        """
        data = self._graphql(WEEKEND_QUERY, {"username": username, "from": RANGE_FROM, "to": RANGE_TO})
        user: Optional[Dict[str, Any]] = data.get("user")
        if not user:
            raise GitHubAPIError(ErrorKind.NOT_FOUND, f'User "{username}" not found')
        logger.debug("Fetched 2025 contributions for %s", user.get("login") or username)
        return user

    def fetch_avatar(self, username: str) -> bytes:
        url = f"{AVATAR_BASE}/{username}.png"
        try:
            resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise GitHubAPIError(ErrorKind.UNKNOWN, f"Failed to fetch avatar from {url}") from e
        return resp.content


# -----------------------------
# Response accessors
# -----------------------------
def calendar_weeks(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    cal = ((user.get("contributionsCollection") or {}).get("contributionCalendar")) or {}
    weeks = cal.get("weeks")
    if not isinstance(weeks, list):
        raise GitHubAPIError(ErrorKind.UNKNOWN, "Invalid GitHub API response: missing contribution data")
    return weeks


def repository_nodes(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return list((user.get("repositories") or {}).get("nodes") or [])
