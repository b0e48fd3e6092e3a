"""
GitHub Profile Dashboard (Flask)

What it does:
- Accepts a GitHub username
- Fetches the public profile and up to 100 repositories (most recently updated first)
  from the GitHub REST API, without authentication
- Renders a dashboard: profile card, overview / repositories / statistics tabs,
  language distribution, activity summary and a stars timeline
- Filter (name/description substring) and sort (updated, stars, forks, name)
  controls, light/dark theme

Setup:
  pip install -e .

Run:
  python app.py
  open http://localhost:5000

Endpoints:
  GET  /                            -> renders templates/index.html
  GET  /api/dashboard?username=     -> returns JSON dashboard views
  POST /api/dashboard               -> accepts form-data or JSON { "username": "..." }
  GET  /healthz                     -> liveness + non-secret config

Unauthenticated requests are subject to GitHub's rate limit; a 4xx/5xx simply
surfaces as an error message.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import requests
from flask import Flask, jsonify, render_template, request

from repo_views import Repository, SortOption, UserProfile, build_views, parse_repositories

# -----------------------------
# Flask app
# -----------------------------
app = Flask(__name__)

# -----------------------------
# Config
# -----------------------------
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com").rstrip("/")
API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "20"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Fixed page size; no pagination beyond the first page.
REPOS_PER_PAGE = 100

# Username validation (GitHub allows alnum and hyphen; max length 39)
USERNAME_RE = re.compile(r"^[A-Za-z0-9-]{1,39}$")

USER_NOT_FOUND_MESSAGE = "User not found. Please check the username and try again."
FETCH_FAILED_MESSAGE = "An error occurred while fetching data. Please try again later."

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """
    Attach a single stdout handler to the root logger.
    Safe to call more than once.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)
    return root


# -----------------------------
# HTTP helpers
# -----------------------------
class GitHubAPIError(RuntimeError):
    user_message = FETCH_FAILED_MESSAGE
    http_status = 502


class NotFoundError(GitHubAPIError):
    user_message = USER_NOT_FOUND_MESSAGE
    http_status = 404


class TransientError(GitHubAPIError):
    pass


def _headers() -> Dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "User-Agent": "github-profile-dashboard-flask",
        "X-GitHub-Api-Version": API_VERSION,
    }


def _request_json(method: str, url: str, *, params: Optional[dict] = None, timeout: float = REQUEST_TIMEOUT_SECONDS) -> Any:
    """
    Single request, no retries. 404 -> NotFoundError, anything else that is
    not a decodable 2xx -> TransientError.
    """
    try:
        resp = requests.request(method, url, headers=_headers(), params=params, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("GitHub request failed: %s %s: %s", method, url, e)
        raise TransientError(f"GitHub request failed: {e}") from e

    if resp.status_code == 404:
        raise NotFoundError(f"GitHub REST error 404: {url}")
    if resp.status_code >= 400:
        logger.warning("GitHub REST error %s for %s", resp.status_code, url)
        raise TransientError(f"GitHub REST error {resp.status_code}: {resp.text[:600]}")

    try:
        return resp.json()
    except ValueError as e:
        raise TransientError(f"GitHub returned a non-JSON body for {url}") from e


# -----------------------------
# Fetchers
# -----------------------------
def fetch_profile(username: str) -> UserProfile:
    if not USERNAME_RE.match(username or ""):
        raise NotFoundError(f"Invalid GitHub username format: {username!r}")

    data = _request_json("GET", f"{GITHUB_API_BASE}/users/{username}")
    if not isinstance(data, dict):
        raise TransientError("Unexpected profile payload from GitHub.")
    return UserProfile.from_api(data)


def fetch_repositories(username: str) -> List[Repository]:
    if not USERNAME_RE.match(username or ""):
        raise NotFoundError(f"Invalid GitHub username format: {username!r}")

    data = _request_json(
        "GET",
        f"{GITHUB_API_BASE}/users/{username}/repos",
        params={"per_page": REPOS_PER_PAGE, "sort": "updated"},
    )
    if not isinstance(data, list):
        raise TransientError("Unexpected repository payload from GitHub.")
    return parse_repositories(data)


def load_dashboard(username: str) -> Tuple[UserProfile, List[Repository]]:
    """
    Profile first, then repositories. Either failure aborts the whole query
    so callers never see a profile without its repositories.
    """
    logger.info("Loading dashboard for %s", username)
    profile = fetch_profile(username)
    repos = fetch_repositories(username)
    logger.info("Loaded %d repositories for %s", len(repos), username)
    return profile, repos


# -----------------------------
# UI state
# -----------------------------
class Tab(str, Enum):
    OVERVIEW = "overview"
    REPOSITORIES = "repositories"
    STATS = "stats"


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


def _enum_arg(enum_cls, value: Optional[str], default):
    try:
        return enum_cls((value or "").strip().lower())
    except ValueError:
        return default


@dataclass(frozen=True)
class DashboardState:
    username: str = ""
    filter_text: str = ""
    sort: SortOption = SortOption.UPDATED
    tab: Tab = Tab.OVERVIEW
    theme: Theme = Theme.DARK

    @classmethod
    def from_args(cls, args) -> "DashboardState":
        return cls(
            username=(args.get("username") or "").strip(),
            filter_text=args.get("q") or "",
            sort=SortOption.parse(args.get("sort")),
            tab=_enum_arg(Tab, args.get("tab"), Tab.OVERVIEW),
            theme=_enum_arg(Theme, args.get("theme"), Theme.DARK),
        )

    @property
    def dark_mode(self) -> bool:
        return self.theme == Theme.DARK

    @property
    def toggled_theme(self) -> Theme:
        return Theme.LIGHT if self.dark_mode else Theme.DARK

    def with_changes(self, **changes: Any) -> "DashboardState":
        return replace(self, **changes)

    def query_string(self, **changes: Any) -> str:
        s = self.with_changes(**changes) if changes else self
        params = {"username": s.username, "q": s.filter_text, "sort": s.sort.value, "tab": s.tab.value, "theme": s.theme.value}
        return urlencode({k: v for k, v in params.items() if v})

    def to_dict(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "filter_text": self.filter_text,
            "sort": self.sort.value,
            "tab": self.tab.value,
            "theme": self.theme.value,
        }


# -----------------------------
# Flask routes
# -----------------------------
@app.route("/", methods=["GET"])
def home():
    state = DashboardState.from_args(request.args)
    profile: Optional[UserProfile] = None
    views = None
    error: Optional[str] = None

    if state.username:
        try:
            profile, repos = load_dashboard(state.username)
            views = build_views(repos, state.filter_text, state.sort)
        except GitHubAPIError as e:
            logger.info("Dashboard query for %s failed: %s", state.username, e)
            error = e.user_message

    return render_template(
        "index.html",
        state=state,
        profile=profile,
        views=views,
        error=error,
        tabs=list(Tab),
        sort_options=list(SortOption),
    )


def _get_args_from_request() -> Dict[str, str]:
    if request.method == "GET":
        return request.args.to_dict()
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        return {k: str(v) for k, v in payload.items() if v is not None}
    return request.form.to_dict()


@app.route("/api/dashboard", methods=["GET", "POST"])
def api_dashboard():
    state = DashboardState.from_args(_get_args_from_request())

    if not state.username:
        return jsonify({"error": "Missing 'username'."}), 400

    try:
        profile, repos = load_dashboard(state.username)
        views = build_views(repos, state.filter_text, state.sort)
        return jsonify({"profile": profile.to_dict(), **views.to_dict(), "state": state.to_dict()})
    except GitHubAPIError as e:
        return jsonify({"error": e.user_message}), e.http_status
    except Exception as e:
        logger.exception("Unexpected error building dashboard for %s", state.username)
        return jsonify({"error": f"Unexpected server error: {e}"}), 500


@app.route("/healthz", methods=["GET"])
def healthz():
    return jsonify({"ok": True, "github_api_base": GITHUB_API_BASE, "repos_per_page": REPOS_PER_PAGE})


if __name__ == "__main__":
    setup_logging()
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG", "0") == "1")
