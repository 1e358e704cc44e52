"""
Weekend Warrior (Flask)

What it does:
- Accepts a GitHub username
- Fetches the user's 2025 contribution calendar + recently pushed repos (one GraphQL query)
- Computes weekend stats: Saturday/Sunday commits, weekly streaks, busiest day,
  month heatmap, top languages/repos and a simulated hourly breakdown
- Unlocks achievements from fixed thresholds
- Saves the player to a shared MongoDB leaderboard and reports rank/percentile/averages

Setup:
  pip install -e .

Run:
  export GITHUB_TOKEN="github_pat_..."          # required for /stats
  export MONGODB_URI="mongodb://localhost:27017" # optional, enables the leaderboard
  python app.py
  open http://localhost:5000

Endpoints:
  GET  /                       -> small landing page
  POST /stats                  -> JSON { "username": "..." } -> weekend stats
  GET  /leaderboard?limit=N    -> top N players (1-100, default 50)
  GET  /avatar?username=       -> proxied GitHub avatar PNG
  GET  /healthz                -> configuration status
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, current_app, jsonify, request
from pymongo.errors import PyMongoError

from achievements import evaluate_achievements
from config import Settings, load_settings
from github_client import ErrorKind, GitHubAPIError, GitHubClient, calendar_weeks, repository_nodes
from leaderboard import LeaderboardStore, connect_store, fetch_leaderboard, record_result
from weekend_stats import aggregate_weekend_stats

logger = logging.getLogger(__name__)

EXTENSION_KEY = "weekend_warrior"

# GitHub logins: alnum and single inner hyphens, max length 39
USERNAME_RE = re.compile(r"^[a-z\d](?:[a-z\d]|-(?=[a-z\d])){0,38}$", re.IGNORECASE)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

ERROR_RESPONSES: Dict[ErrorKind, Tuple[str, int]] = {
    ErrorKind.INVALID_INPUT: ("Invalid GitHub username format", 400),
    ErrorKind.NOT_FOUND: ("User not found", 404),
    ErrorKind.RATE_LIMITED: ("GitHub API rate limit exceeded. Please try again later.", 429),
    ErrorKind.MISCONFIGURED: ("GitHub API configuration error", 500),
    ErrorKind.UNKNOWN: ("Failed to fetch GitHub stats", 500),
}


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config: Optional[Dict[str, Any]] = None,
    store: Optional[LeaderboardStore] = None,
    github_client: Optional[GitHubClient] = None,
) -> Flask:
    """
    Build the app with its collaborators. Pass `store` / `github_client` to
    inject them (tests); otherwise they are built from settings.
    """
    settings = load_settings(config)

    app = Flask(__name__)
    app.config["SETTINGS"] = settings

    if github_client is None:
        github_client = GitHubClient(
            token=settings.github_token,
            graphql_url=settings.github_graphql_url,
            timeout_seconds=settings.github_timeout_seconds,
        )
        if not settings.token_configured:
            logger.warning("GITHUB_TOKEN not set; /stats will report a configuration error")

    if store is None and settings.leaderboard_configured:
        try:
            store = connect_store(settings.mongodb_uri, settings.mongodb_database, settings.mongodb_collection)
        except PyMongoError:
            # e.g. unresolvable mongodb+srv host; the leaderboard degrades, the app still starts
            logger.exception("Could not set up leaderboard store; leaderboard features disabled")
            store = None
    elif store is None:
        logger.warning("MONGODB_URI not set; leaderboard features disabled")

    app.extensions[EXTENSION_KEY] = {"store": store, "github": github_client}

    _register_routes(app)
    return app


def _store() -> Optional[LeaderboardStore]:
    return current_app.extensions[EXTENSION_KEY]["store"]


def _github() -> GitHubClient:
    return current_app.extensions[EXTENSION_KEY]["github"]


def _error(kind: ErrorKind):
    message, status = ERROR_RESPONSES[kind]
    return jsonify({"error": message}), status


# -----------------------------
# Stats pipeline
# -----------------------------
def build_weekend_stats(username: str) -> Dict[str, Any]:
    """
    fetch -> aggregate -> achievements -> leaderboard write + read.
    """
    user = _github().fetch_contributions(username)
    login = user.get("login") or username

    stats = aggregate_weekend_stats(login, calendar_weeks(user), repository_nodes(user))
    total_weeks = stats.pop("weeksInCalendar")

    achievements = evaluate_achievements(
        stats["totalWeekendCommits"],
        stats["longestStreak"],
        stats["commitsByHour"],
        len(stats["topLanguages"]),
        total_weeks,
    )
    stats["achievements"] = achievements

    standing = record_result(_store(), stats, achievements)
    stats["globalRank"] = standing["rank"]
    stats["totalPlayers"] = standing["totalPlayers"]
    stats["percentile"] = standing["percentile"]
    stats["globalAverages"] = standing["globalAverages"]

    logger.info(
        "Weekend stats for %s: %d commits, rank %d/%d",
        login,
        stats["totalWeekendCommits"],
        stats["globalRank"],
        stats["totalPlayers"],
    )
    return stats


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return DEFAULT_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        return None
    if limit < 1 or limit > MAX_LIMIT:
        return None
    return limit


# -----------------------------
# Flask routes
# -----------------------------
def _register_routes(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def home():
        return (
            """
            <!doctype html>
            <html>
            <head><meta charset="utf-8"><title>Weekend Warrior</title></head>
            <body style="font-family: monospace; background: #0a0a0a; color: #00ff00; padding: 24px;">
              <h2>WEEKEND WARRIOR API is running</h2>
              <p>Try: <code>POST /stats {"username": "octocat"}</code></p>
              <p>Leaderboard: <code>/leaderboard?limit=10</code></p>
            </body>
            </html>
            """,
            200,
            {"Content-Type": "text/html; charset=utf-8"},
        )

    @app.route("/stats", methods=["GET", "POST"])
    def stats():
        if request.method != "POST":
            return jsonify({"error": "Method not allowed. Use POST."}), 405

        payload = request.get_json(silent=True) or {}
        username = payload.get("username") if isinstance(payload, dict) else None
        if not username or not isinstance(username, str):
            return jsonify({"error": "Username is required"}), 400
        if not USERNAME_RE.match(username):
            return _error(ErrorKind.INVALID_INPUT)

        try:
            return jsonify(build_weekend_stats(username))
        except GitHubAPIError as e:
            logger.warning("GitHub lookup for %s failed (%s): %s", username, e.kind.value, e)
            return _error(e.kind)
        except Exception:
            logger.exception("Unexpected error computing stats for %s", username)
            return _error(ErrorKind.UNKNOWN)

    @app.route("/leaderboard", methods=["GET", "POST"])
    def leaderboard():
        if request.method != "GET":
            return jsonify({"error": "Method not allowed. Use GET."}), 405

        limit = _parse_limit(request.args.get("limit"))
        if limit is None:
            return jsonify({"error": "Limit must be between 1 and 100"}), 400

        entries = fetch_leaderboard(_store(), limit)
        return jsonify({"leaderboard": entries, "total": len(entries), "limit": limit})

    @app.route("/avatar", methods=["GET"])
    def avatar():
        username = (request.args.get("username") or "").strip()
        if not username:
            return jsonify({"error": "Username required"}), 400
        if not USERNAME_RE.match(username):
            return _error(ErrorKind.INVALID_INPUT)

        try:
            image = _github().fetch_avatar(username)
        except GitHubAPIError as e:
            logger.warning("Avatar proxy error for %s: %s", username, e)
            return jsonify({"error": "Failed to fetch avatar"}), 500

        resp = Response(image, mimetype="image/png")
        resp.headers["Cache-Control"] = "public, max-age=86400"
        return resp

    @app.route("/healthz", methods=["GET"])
    def healthz():
        settings: Settings = current_app.config["SETTINGS"]
        return jsonify(
            {
                "ok": True,
                "token_configured": settings.token_configured,
                "leaderboard_configured": _store() is not None,
            }
        )


if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host="0.0.0.0", port=settings.port, debug=True)
