"""
Weekend aggregation over a 2025 GitHub contribution calendar.

Input is the calendar as GitHub returns it (weeks of days, Sunday first, each
day carrying date / weekday / contributionCount) and the owned repositories with
their default-branch commit history. Output is a WeekendStats-shaped dict with
camelCase keys, ready to serialise.

Only days dated 2025 that fall on a Saturday (weekday 6) or Sunday (weekday 0)
are counted. Streaks are measured in weeks, not days.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Dict, List, Optional

from github_client import YEAR

SUNDAY = 0
SATURDAY = 6
WEEKEND_DAYS = (SUNDAY, SATURDAY)

# Dedication is measured against a fixed year of weekends, not the weeks present.
WEEKENDS_PER_YEAR = 52
TOP_N = 5
DEFAULT_LANGUAGE_COLOR = "#808080"

MONTHS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]

# SIMULATED DATA: the contribution calendar carries no time of day, so the
# hourly breakdown is a fixed weighting skewed toward evenings and nights.
# It is not derived from commit timestamps. The weights sum to 1.58, so bucket
# totals are not expected to match the commit total.
HOUR_WEIGHTS: Dict[int, float] = {
    0: 0.08,
    1: 0.06,
    2: 0.04,
    3: 0.02,
    4: 0.01,
    5: 0.01,
    6: 0.02,
    7: 0.03,
    8: 0.04,
    9: 0.06,
    10: 0.08,
    11: 0.09,
    12: 0.07,
    13: 0.06,
    14: 0.08,
    15: 0.09,
    16: 0.10,
    17: 0.08,
    18: 0.07,
    19: 0.08,
    20: 0.09,
    21: 0.10,
    22: 0.12,
    23: 0.10,
}


# -----------------------------
# Utility helpers
# -----------------------------
def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _dateparse(s: Optional[str]) -> Optional[dt.datetime]:
    if not s:
        return None
    try:
        parsed = dt.datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def _parse_day(ds: Optional[str]) -> Optional[dt.date]:
    if not ds:
        return None
    try:
        return dt.date.fromisoformat(ds[:10])
    except ValueError:
        return None


def _sunday_based_weekday(d: dt.date) -> int:
    return d.isoweekday() % 7


def synthetic_hourly_distribution(commits: int) -> List[int]:
    """
    Spread one day's commits over 24 hours using HOUR_WEIGHTS (floored).
    """
    return [int(math.floor(commits * HOUR_WEIGHTS[hour])) for hour in range(24)]


def _empty_day() -> Dict[str, Any]:
    return {"date": None, "commits": 0}


# -----------------------------
# Repositories
# -----------------------------
def weekend_repo_commits(repo: Dict[str, Any], username: str) -> Optional[int]:
    """
    Count the repo's 2025 weekend commits authored by `username`.
    Returns None when the repo exposes no commit history (empty repo, no branch).
    """
    target = ((repo.get("defaultBranchRef") or {}).get("target")) or {}
    history = target.get("history")
    if not history:
        return None

    wanted = username.lower()
    count = 0
    for commit in history.get("nodes") or []:
        login = ((((commit or {}).get("author") or {}).get("user")) or {}).get("login") or ""
        if login.lower() != wanted:
            continue
        committed = _dateparse(commit.get("committedDate"))
        if committed is None or committed.year != YEAR:
            continue
        if _sunday_based_weekday(committed.date()) not in WEEKEND_DAYS:
            continue
        count += 1
    return count


def _language_and_repo_stats(repositories: List[Dict[str, Any]], username: str, total: int) -> Dict[str, Any]:
    languages: Dict[str, Dict[str, Any]] = {}
    repos: List[Dict[str, Any]] = []

    for repo in repositories:
        commits = weekend_repo_commits(repo, username)
        if not commits:
            continue
        repos.append({"name": repo.get("name"), "commits": commits})

        primary = repo.get("primaryLanguage") or {}
        lang = primary.get("name")
        if lang:
            entry = languages.setdefault(lang, {"commits": 0, "color": primary.get("color") or DEFAULT_LANGUAGE_COLOR})
            entry["commits"] += commits

    top_languages = [
        {
            "name": name,
            "commits": data["commits"],
            "percentage": round_half_up(data["commits"] / total * 100) if total > 0 else 0,
            "color": data["color"],
        }
        for name, data in languages.items()
    ]
    # sorted() is stable: ties keep repository order
    top_languages = sorted(top_languages, key=lambda x: x["commits"], reverse=True)[:TOP_N]
    top_repos = sorted(repos, key=lambda x: x["commits"], reverse=True)[:TOP_N]
    return {"topLanguages": top_languages, "topRepos": top_repos}


# -----------------------------
# Aggregation
# -----------------------------
def aggregate_weekend_stats(
    username: str,
    weeks: List[Dict[str, Any]],
    repositories: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Walk the calendar once, week by week, and build the weekend aggregate.

    The returned dict has every WeekendStats field except achievements and the
    leaderboard fields, plus `weeksInCalendar` (number of calendar weeks in the
    input, used by the achievement rules).
    """
    saturday_commits = 0
    sunday_commits = 0
    longest_streak = 0
    current_streak = 0
    counting_weeks = 0
    busiest_day: Dict[str, Any] = {"date": "", "commits": 0}
    hourly = [0] * 24
    months: Dict[str, Dict[str, Any]] = {}

    for week_number, week in enumerate(weeks, start=1):
        week_has_commits = False

        for day in (week or {}).get("contributionDays") or []:
            d = _parse_day(day.get("date"))
            if d is None or d.year != YEAR:
                continue
            weekday = day.get("weekday")
            weekday = _sunday_based_weekday(d) if weekday is None else int(weekday)
            if weekday not in WEEKEND_DAYS:
                continue

            commits = int(day.get("contributionCount") or 0)
            if weekday == SATURDAY:
                saturday_commits += commits
            else:
                sunday_commits += commits

            if commits > 0:
                week_has_commits = True
                if commits > busiest_day["commits"]:
                    busiest_day = {"date": day.get("date"), "commits": commits}
                for hour, n in enumerate(synthetic_hourly_distribution(commits)):
                    hourly[hour] += n

            key = MONTHS[d.month - 1]
            month = months.setdefault(key, {"month": key, "weeks": []})
            if not month["weeks"] or month["weeks"][-1]["weekNumber"] != week_number:
                month["weeks"].append({"weekNumber": week_number, "saturday": _empty_day(), "sunday": _empty_day()})
            slot = "saturday" if weekday == SATURDAY else "sunday"
            month["weeks"][-1][slot] = {"date": day.get("date"), "commits": commits}

        if week_has_commits:
            counting_weeks += 1
            current_streak += 1
            longest_streak = max(longest_streak, current_streak)
        else:
            current_streak = 0

    total = saturday_commits + sunday_commits
    repo_stats = _language_and_repo_stats(repositories or [], username, total)

    return {
        "username": username,
        "totalWeekendCommits": total,
        "saturdayCommits": saturday_commits,
        "sundayCommits": sunday_commits,
        # Not clamped: more than 52 qualifying weeks yields > 100
        "dedicationPercentage": round_half_up(counting_weeks / WEEKENDS_PER_YEAR * 100),
        "longestStreak": longest_streak,
        "currentStreak": current_streak,
        "busiestDay": busiest_day,
        "weekendsByMonth": [months[m] for m in MONTHS if m in months],
        "commitsByHour": [{"hour": hour, "commits": n} for hour, n in enumerate(hourly)],
        "topLanguages": repo_stats["topLanguages"],
        "topRepos": repo_stats["topRepos"],
        "weeksInCalendar": len(weeks),
    }
