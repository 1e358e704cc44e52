"""
Achievement badges for a weekend-stats result.

Nine fixed badges unlocked by thresholds. The hour-window badges (night-owl,
early-bird, coffee-powered) read the simulated hourly distribution from
weekend_stats, so they track commit volume, not real commit times.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List

NIGHT_HOURS = (22, 23, 0, 1, 2)
EARLY_HOURS = (5, 6, 7, 8)
GRAVEYARD_HOURS = (2, 3, 4, 5, 6)

ACHIEVEMENTS: List[Dict[str, str]] = [
    {
        "id": "weekend-warrior",
        "name": "Weekend Warrior",
        "description": "Showed up for the weekend grind",
        "icon": "⚔️",
        "rarity": "common",
        "requirement": "20+ weeks of data with weekend commits",
    },
    {
        "id": "night-owl",
        "name": "Night Owl",
        "description": "Codes while the world sleeps",
        "icon": "🦉",
        "rarity": "rare",
        "requirement": "20+ commits between 10PM and 2AM",
    },
    {
        "id": "early-bird",
        "name": "Early Bird",
        "description": "Commits before breakfast",
        "icon": "🐦",
        "rarity": "rare",
        "requirement": "20+ commits between 5AM and 8AM",
    },
    {
        "id": "streak-master",
        "name": "Streak Master",
        "description": "Weekend after weekend, no breaks",
        "icon": "🔥",
        "rarity": "epic",
        "requirement": "8+ consecutive weekends with commits",
    },
    {
        "id": "binge-coder",
        "name": "Binge Coder",
        "description": "Marathon weekend sessions",
        "icon": "🍿",
        "rarity": "epic",
        "requirement": "200+ weekend commits",
    },
    {
        "id": "no-life",
        "name": "No Life",
        "description": "Weekends are for shipping",
        "icon": "💀",
        "rarity": "legendary",
        "requirement": "5+ weekend commits per week on average",
    },
    {
        "id": "polyglot",
        "name": "Polyglot",
        "description": "Speaks many languages fluently",
        "icon": "🌍",
        "rarity": "rare",
        "requirement": "Weekend commits in 3+ languages",
    },
    {
        "id": "coffee-powered",
        "name": "Coffee Powered",
        "description": "Running on caffeine at ungodly hours",
        "icon": "☕",
        "rarity": "common",
        "requirement": "10+ commits between 2AM and 6AM",
    },
    {
        "id": "legend",
        "name": "Legend",
        "description": "A weekend coding legend",
        "icon": "👑",
        "rarity": "legendary",
        "requirement": "500+ weekend commits",
    },
]


def _commits_in(commits_by_hour: Iterable[Dict[str, Any]], hours: Iterable[int]) -> int:
    wanted = set(hours)
    return sum(int(h.get("commits") or 0) for h in commits_by_hour if h.get("hour") in wanted)


def evaluate_achievements(
    total_commits: int,
    longest_streak: int,
    commits_by_hour: List[Dict[str, Any]],
    language_count: int,
    total_weeks: int,
) -> List[Dict[str, Any]]:
    """
    Apply the fixed unlock thresholds and return the full catalog with `unlocked` set.

    The hour-based rules read the synthetic hourly distribution, so they reflect
    commit volume rather than real commit times.
    """
    night = _commits_in(commits_by_hour, NIGHT_HOURS)
    early = _commits_in(commits_by_hour, EARLY_HOURS)
    graveyard = _commits_in(commits_by_hour, GRAVEYARD_HOURS)

    rules: Dict[str, Callable[[], bool]] = {
        "weekend-warrior": lambda: total_weeks >= 20 and total_commits > 0,
        "night-owl": lambda: night >= 20,
        "early-bird": lambda: early >= 20,
        "streak-master": lambda: longest_streak >= 8,
        "binge-coder": lambda: total_commits > 200,
        "no-life": lambda: total_commits / max(total_weeks, 1) > 5,
        "polyglot": lambda: language_count >= 3,
        "coffee-powered": lambda: graveyard >= 10,
        "legend": lambda: total_commits > 500,
    }

    return [{**a, "unlocked": bool(rules[a["id"]]())} for a in ACHIEVEMENTS]


def count_unlocked(achievements: Iterable[Dict[str, Any]]) -> int:
    return sum(1 for a in achievements if a.get("unlocked"))
