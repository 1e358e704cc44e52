import pytest
from pymongo.errors import ServerSelectionTimeoutError

from achievements import evaluate_achievements
from leaderboard import LeaderboardStore, degraded_standing, fetch_leaderboard, record_result


def player(username, commits, dedication=0, streak=0):
    return {
        "username": username,
        "totalWeekendCommits": commits,
        "saturdayCommits": commits,
        "sundayCommits": 0,
        "dedicationPercentage": dedication,
        "longestStreak": streak,
    }


def unlocked(n):
    return [{"id": str(i), "unlocked": i < n} for i in range(9)]


class BrokenCollection:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("mongo unreachable")

        return fail


def test_single_entry_ranks_first(store):
    store.save(player("solo", 12), unlocked(2))

    assert store.rank("solo") == {"rank": 1, "totalPlayers": 1}
    assert store.percentile("solo") == 0


def test_unknown_user_has_no_rank(store):
    assert store.rank("ghost") is None
    assert store.percentile("ghost") is None


def test_save_replaces_previous_entry(store, collection):
    store.save(player("octocat", 50, dedication=40, streak=6), unlocked(5))
    store.save(player("octocat", 8, dedication=10, streak=1), unlocked(1))

    assert collection.count_documents({}) == 1
    doc = collection.find_one({"username": "octocat"})
    assert doc["totalWeekendCommits"] == 8
    assert doc["dedicationPercentage"] == 10
    assert doc["longestStreak"] == 1
    assert doc["achievementsUnlocked"] == 1
    assert doc["lastUpdated"] is not None


def test_rank_counts_strictly_greater_scores(store):
    for name, commits in [("a", 30), ("b", 20), ("c", 20), ("d", 5)]:
        store.save(player(name, commits), unlocked(0))

    assert store.rank("a")["rank"] == 1
    assert store.rank("b")["rank"] == 2
    assert store.rank("c")["rank"] == 2
    assert store.rank("d") == {"rank": 4, "totalPlayers": 4}


def test_list_positions_are_ordinal(store):
    for name, commits in [("b", 20), ("a", 30), ("c", 20)]:
        store.save(player(name, commits), unlocked(0))

    entries = store.list(10)

    assert [(e["username"], e["rank"]) for e in entries] == [("a", 1), ("b", 2), ("c", 3)]
    assert all("_id" not in e for e in entries)
    assert all(isinstance(e["lastUpdated"], str) for e in entries)
    assert [e["username"] for e in store.list(2)] == ["a", "b"]


def test_percentile_extremes(store):
    for i in range(201):
        store.save(player(f"p{i}", i), unlocked(0))

    assert store.percentile("p200") == 100
    assert store.percentile("p0") == 0
    assert store.percentile("p100") == 50


def test_global_averages(store):
    assert store.global_averages() == {"avgCommits": 0, "avgDedication": 0, "avgStreak": 0}

    store.save(player("a", 10, dedication=3, streak=2), unlocked(0))
    store.save(player("b", 21, dedication=4, streak=2), unlocked(0))

    assert store.global_averages() == {"avgCommits": 16, "avgDedication": 4, "avgStreak": 2}


def test_record_result_reads_back_standing(store):
    store.save(player("rival", 100, dedication=50, streak=10), unlocked(0))
    stats = player("octocat", 20, dedication=10, streak=2)
    achievements = evaluate_achievements(20, 2, [], 0, 1)

    standing = record_result(store, stats, achievements)

    assert standing == {
        "rank": 2,
        "totalPlayers": 2,
        "percentile": 0,
        "globalAverages": {"avgCommits": 60, "avgDedication": 30, "avgStreak": 6},
    }


def test_saved_entry_appears_once_in_listing(store):
    for name, commits in [("a", 3), ("b", 9)]:
        store.save(player(name, commits), unlocked(0))
    record_result(store, player("octocat", 7, dedication=12, streak=3), unlocked(4))

    matches = [e for e in store.list(100) if e["username"] == "octocat"]

    assert len(matches) == 1
    entry = matches[0]
    assert entry["totalWeekendCommits"] == 7
    assert entry["dedicationPercentage"] == 12
    assert entry["longestStreak"] == 3
    assert entry["achievementsUnlocked"] == 4
    assert entry["rank"] == 2


@pytest.mark.parametrize("broken", [None, LeaderboardStore(BrokenCollection())], ids=["unconfigured", "unreachable"])
def test_record_result_degrades_without_store(broken):
    standing = record_result(broken, player("octocat", 15), unlocked(0))

    assert standing == degraded_standing()
    assert standing == {
        "rank": 1,
        "totalPlayers": 1,
        "percentile": 1,
        "globalAverages": {"avgCommits": 0, "avgDedication": 0, "avgStreak": 0},
    }


def test_fetch_leaderboard_degrades_to_empty():
    assert fetch_leaderboard(None, 10) == []
    assert fetch_leaderboard(LeaderboardStore(BrokenCollection()), 10) == []


def test_ensure_indexes_swallows_store_errors():
    LeaderboardStore(BrokenCollection()).ensure_indexes()


def test_username_index_is_unique(collection, store):
    info = collection.index_information()

    assert any(spec.get("unique") and spec["key"][0][0] == "username" for spec in info.values())
