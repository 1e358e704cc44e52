"""
Shared leaderboard backed by a single MongoDB collection.

One document per username, fully replaced on every lookup. Rank, percentile
and averages are read back after the write and are not snapshot consistent
with it: a concurrent save by another player can shift them.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from achievements import count_unlocked
from weekend_stats import round_half_up

logger = logging.getLogger(__name__)

ENTRY_FIELDS = (
    "totalWeekendCommits",
    "saturdayCommits",
    "sundayCommits",
    "dedicationPercentage",
    "longestStreak",
)

ZERO_AVERAGES = {"avgCommits": 0, "avgDedication": 0, "avgStreak": 0}


def degraded_standing() -> Dict[str, Any]:
    return {
        "rank": 1,
        "totalPlayers": 1,
        "percentile": 1,
        "globalAverages": dict(ZERO_AVERAGES),
    }


def _serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in doc.items() if k != "_id"}
    updated = out.get("lastUpdated")
    if isinstance(updated, dt.datetime):
        out["lastUpdated"] = updated.isoformat()
    return out


class LeaderboardStore:
    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    def ensure_indexes(self) -> None:
        try:
            self.collection.create_index([("username", ASCENDING)], unique=True)
            self.collection.create_index([("totalWeekendCommits", DESCENDING)])
            self.collection.create_index([("lastUpdated", DESCENDING)])
        except PyMongoError as e:
            logger.warning("Leaderboard index creation failed: %s", e)

    def save(self, stats: Dict[str, Any], achievements: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Upsert the player's entry, replacing whatever was stored before.
        """
        entry: Dict[str, Any] = {"username": stats["username"]}
        for field in ENTRY_FIELDS:
            entry[field] = int(stats.get(field) or 0)
        entry["achievementsUnlocked"] = count_unlocked(achievements)
        entry["lastUpdated"] = dt.datetime.now(dt.timezone.utc)

        self.collection.replace_one({"username": entry["username"]}, dict(entry), upsert=True)
        return entry

    def _score(self, username: str) -> Optional[int]:
        doc = self.collection.find_one({"username": username}, {"totalWeekendCommits": 1})
        if doc is None:
            return None
        return int(doc.get("totalWeekendCommits") or 0)

    def total_players(self) -> int:
        return self.collection.count_documents({})

    def rank(self, username: str) -> Optional[Dict[str, int]]:
        """
        1 + number of players with a strictly higher score. Equal scores share a rank.
        """
        score = self._score(username)
        if score is None:
            return None
        above = self.collection.count_documents({"totalWeekendCommits": {"$gt": score}})
        return {"rank": above + 1, "totalPlayers": self.total_players()}

    def percentile(self, username: str) -> Optional[int]:
        score = self._score(username)
        if score is None:
            return None
        total = self.total_players()
        if total == 0:
            return None
        below = self.collection.count_documents({"totalWeekendCommits": {"$lt": score}})
        return round_half_up(below / total * 100)

    def list(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Top entries by score. `rank` here is the list position, so tied
        players get different numbers (unlike rank()).
        """
        cursor = (
            self.collection.find({})
            .sort([("totalWeekendCommits", DESCENDING), ("_id", ASCENDING)])
            .limit(int(limit))
        )
        return [{**_serialize(doc), "rank": position} for position, doc in enumerate(cursor, start=1)]

    def global_averages(self) -> Dict[str, int]:
        result = list(
            self.collection.aggregate(
                [
                    {
                        "$group": {
                            "_id": None,
                            "avgCommits": {"$avg": "$totalWeekendCommits"},
                            "avgDedication": {"$avg": "$dedicationPercentage"},
                            "avgStreak": {"$avg": "$longestStreak"},
                        }
                    }
                ]
            )
        )
        if not result:
            return dict(ZERO_AVERAGES)
        row = result[0]
        return {k: round_half_up(float(row.get(k) or 0)) for k in ZERO_AVERAGES}


def connect_store(uri: str, database: str = "weekend-warrior", collection: str = "leaderboard") -> LeaderboardStore:
    """
    Build the store for one process. pymongo connects lazily, so an unreachable
    server only shows up (as PyMongoError) on first use.
    """
    client: MongoClient = MongoClient(
        uri,
        maxPoolSize=10,
        serverSelectionTimeoutMS=3000,
        connectTimeoutMS=3000,
        socketTimeoutMS=3000,
        tz_aware=True,
    )
    store = LeaderboardStore(client[database][collection])
    store.ensure_indexes()
    return store


# -----------------------------
# Request-level helpers
# -----------------------------
def record_result(
    store: Optional[LeaderboardStore],
    stats: Dict[str, Any],
    achievements: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Save the player and read back rank, percentile and global averages.
    Never raises for store problems; falls back to degraded_standing().
    """
    if store is None:
        logger.warning("Leaderboard not configured (MONGODB_URI missing); using default standing")
        return degraded_standing()

    username = stats["username"]
    try:
        store.save(stats, achievements)
        rank_info = store.rank(username)
        percentile = store.percentile(username)
        averages = store.global_averages()
    except PyMongoError:
        logger.exception("Failed to save %s to leaderboard", username)
        return degraded_standing()

    return {
        "rank": rank_info["rank"] if rank_info else 1,
        "totalPlayers": rank_info["totalPlayers"] if rank_info else 1,
        "percentile": percentile if percentile is not None else 1,
        "globalAverages": averages,
    }


def fetch_leaderboard(store: Optional[LeaderboardStore], limit: int) -> List[Dict[str, Any]]:
    if store is None:
        return []
    try:
        return store.list(limit)
    except PyMongoError:
        logger.exception("Failed to fetch leaderboard")
        return []
