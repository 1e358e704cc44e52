from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

import mongomock
import pytest

from app import create_app
from github_client import GitHubAPIError
from leaderboard import LeaderboardStore


def make_week(start: dt.date, counts: Optional[Dict[int, int]] = None, days: int = 7) -> Dict[str, Any]:
    """A calendar week starting at `start`; `counts` maps day offset -> contributions."""
    counts = counts or {}
    contribution_days = []
    for offset in range(days):
        d = start + dt.timedelta(days=offset)
        contribution_days.append(
            {
                "date": d.isoformat(),
                "weekday": d.isoweekday() % 7,
                "contributionCount": counts.get(offset, 0),
            }
        )
    return {"contributionDays": contribution_days}


def make_weekend_weeks(first_sunday: dt.date, pattern: List[int]) -> List[Dict[str, Any]]:
    """One Sunday-first week per entry; the entry is that week's Saturday count."""
    return [make_week(first_sunday + dt.timedelta(weeks=i), {6: n}) for i, n in enumerate(pattern)]


def make_commit(login: Optional[str], committed: str) -> Dict[str, Any]:
    return {"committedDate": committed, "author": {"user": {"login": login} if login else None}}


def make_repo(name: str, commits: List[Dict[str, Any]], language: Optional[str] = None, color: Optional[str] = None):
    return {
        "name": name,
        "primaryLanguage": {"name": language, "color": color} if language else None,
        "defaultBranchRef": {"target": {"history": {"totalCount": len(commits), "nodes": commits}}},
    }


class FakeGitHubClient:
    def __init__(self, user: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None, avatar: bytes = b""):
        self.user = user
        self.error = error
        self.avatar = avatar
        self.calls: List[str] = []

    def fetch_contributions(self, username: str) -> Dict[str, Any]:
        self.calls.append(username)
        if self.error is not None:
            raise self.error
        return self.user

    def fetch_avatar(self, username: str) -> bytes:
        if isinstance(self.error, GitHubAPIError):
            raise self.error
        return self.avatar


@pytest.fixture
def collection():
    return mongomock.MongoClient()["weekend-warrior"]["leaderboard"]


@pytest.fixture
def store(collection):
    s = LeaderboardStore(collection)
    s.ensure_indexes()
    return s


@pytest.fixture
def github_user():
    weeks = [make_week(dt.date(2025, 1, 5), {0: 5, 2: 3, 6: 10})]
    return {
        "login": "octocat",
        "contributionsCollection": {"contributionCalendar": {"totalContributions": 18, "weeks": weeks}},
        "repositories": {
            "nodes": [
                make_repo(
                    "hello-world",
                    [make_commit("octocat", "2025-01-11T15:00:00Z"), make_commit("octocat", "2025-01-08T15:00:00Z")],
                    language="Python",
                    color="#3572A5",
                )
            ]
        },
    }


@pytest.fixture
def make_app():
    def _make(github=None, store=None):
        app = create_app(
            config={"github_token": "test-token", "mongodb_uri": ""},
            store=store,
            github_client=github or FakeGitHubClient(),
        )
        app.config["TESTING"] = True
        return app

    return _make
