"""
Repository collection views for the GitHub dashboard.

Everything in this module is pure: it takes the raw repository snapshot plus
the current filter/sort parameters and derives what the dashboard renders:
  - the filtered + sorted repository list
  - the top-5 language distribution
  - the "stars over time" timeline (first 10 starred repos by creation)
  - the most-starred repositories and a small activity summary

Nothing here performs I/O or raises on malformed API payloads. Bad fields are
defaulted (empty name, zero counters, missing timestamps/language) so that a
single broken repository never aborts the whole transform.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence


class SortOption(str, Enum):
    UPDATED = "updated"
    STARS = "stars"
    FORKS = "forks"
    NAME = "name"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOption":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UPDATED


LANGUAGE_LIMIT = 5
TIMELINE_LIMIT = 10
TOP_REPOS_LIMIT = 4

LANGUAGE_COLORS: Dict[str, str] = {
    "JavaScript": "#f1e05a",
    "TypeScript": "#3178c6",
    "Python": "#3572A5",
    "Java": "#b07219",
    "C++": "#f34b7d",
    "HTML": "#e34c26",
    "CSS": "#563d7c",
    "Ruby": "#701516",
    "Go": "#00ADD8",
    "PHP": "#4F5D95",
    "C": "#555555",
    "Swift": "#ffac45",
    "Kotlin": "#A97BFF",
    "Rust": "#dea584",
    "Dart": "#00B4AB",
}

_MIN_TS = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


# -----------------------------
# Parsing helpers
# -----------------------------
def _dateparse(s: Any) -> Optional[dt.datetime]:
    if not s or not isinstance(s, str):
        return None
    try:
        parsed = dt.datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _count(value: Any) -> int:
    try:
        n = int(value or 0)
    except (TypeError, ValueError, OverflowError):
        # None, junk strings, NaN and out-of-range numbers (1e400 decodes to inf)
        return 0
    return max(0, n)


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def language_color(name: str) -> str:
    """
    Palette color for a language. Unknown languages get a stable color
    derived from the name so the same language renders the same everywhere.
    """
    if name in LANGUAGE_COLORS:
        return LANGUAGE_COLORS[name]
    return "#" + hashlib.md5(name.encode("utf-8"), usedforsecurity=False).hexdigest()[:6]


# -----------------------------
# Snapshots
# -----------------------------
@dataclass(frozen=True)
class UserProfile:
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    html_url: Optional[str] = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    created_at: Optional[dt.datetime] = None

    @classmethod
    def from_api(cls, payload: Any) -> "UserProfile":
        data = payload if isinstance(payload, dict) else {}
        return cls(
            login=_text(data.get("login")) or "",
            name=_text(data.get("name")),
            avatar_url=_text(data.get("avatar_url")),
            bio=_text(data.get("bio")),
            html_url=_text(data.get("html_url")),
            public_repos=_count(data.get("public_repos")),
            followers=_count(data.get("followers")),
            following=_count(data.get("following")),
            created_at=_dateparse(data.get("created_at")),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.login

    @property
    def joined_year(self) -> Optional[int]:
        return self.created_at.year if self.created_at else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "login": self.login,
            "name": self.name,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "html_url": self.html_url,
            "public_repos": self.public_repos,
            "followers": self.followers,
            "following": self.following,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Repository:
    id: int
    name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    html_url: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Any) -> "Repository":
        data = payload if isinstance(payload, dict) else {}
        return cls(
            id=_count(data.get("id")),
            name=_text(data.get("name")) or "",
            description=_text(data.get("description")),
            language=_text(data.get("language")),
            stargazers_count=_count(data.get("stargazers_count")),
            forks_count=_count(data.get("forks_count")),
            open_issues_count=_count(data.get("open_issues_count")),
            created_at=_dateparse(data.get("created_at")),
            updated_at=_dateparse(data.get("updated_at")),
            html_url=_text(data.get("html_url")),
        )

    @property
    def language_color(self) -> Optional[str]:
        return language_color(self.language) if self.language else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "language": self.language,
            "language_color": self.language_color,
            "stargazers_count": self.stargazers_count,
            "forks_count": self.forks_count,
            "open_issues_count": self.open_issues_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "html_url": self.html_url,
        }


def parse_repositories(payload: Iterable[Any]) -> List[Repository]:
    return [Repository.from_api(item) for item in payload]


# -----------------------------
# Derived view records
# -----------------------------
@dataclass(frozen=True)
class LanguageShare:
    name: str
    count: int
    percentage: float
    color: str
    total: int = 0

    @property
    def display_percentage(self) -> str:
        return f"{self.percentage:.1f}"

    @property
    def floor_percentage(self) -> float:
        """
        Percentage truncated to one decimal with integer math, so the shares
        of one distribution never add up to more than 100.
        """
        if self.total <= 0:
            return 0.0
        return (1000 * self.count // self.total) / 10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "count": self.count,
            "percentage": self.floor_percentage,
            "display_percentage": self.display_percentage,
            "color": self.color,
        }


@dataclass(frozen=True)
class TimelinePoint:
    name: str
    stars: int
    created: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "stars": self.stars, "created": self.created}


@dataclass(frozen=True)
class ActivitySummary:
    recently_updated: int = 0
    starred: int = 0
    forked: int = 0
    with_issues: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "recently_updated": self.recently_updated,
            "starred": self.starred,
            "forked": self.forked,
            "with_issues": self.with_issues,
        }


@dataclass(frozen=True)
class DashboardViews:
    repositories: List[Repository]
    languages: List[LanguageShare]
    stars_timeline: List[TimelinePoint]
    top_repositories: List[Repository]
    activity: ActivitySummary
    total_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_count": self.total_count,
            "repositories": [r.to_dict() for r in self.repositories],
            "languages": [l.to_dict() for l in self.languages],
            "stars_timeline": [p.to_dict() for p in self.stars_timeline],
            "top_repositories": [r.to_dict() for r in self.top_repositories],
            "activity": self.activity.to_dict(),
        }


# -----------------------------
# Filter / sort
# -----------------------------
def filter_repositories(repos: Sequence[Repository], filter_text: str) -> List[Repository]:
    if not filter_text:
        return list(repos)
    needle = filter_text.casefold()
    return [
        r for r in repos
        if needle in r.name.casefold() or (r.description is not None and needle in r.description.casefold())
    ]


def _collation_key(name: str):
    """
    Human ordering for names: letters first compared without accents or
    case, then accents, then lowercase before uppercase.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return (base, decomposed.casefold(), name.swapcase())


def sort_repositories(repos: Sequence[Repository], sort_option: Any) -> List[Repository]:
    """
    Stable sort. Descending orders use reverse=True, which keeps equal keys
    in input order.
    """
    option = sort_option if isinstance(sort_option, SortOption) else SortOption.parse(sort_option)
    if option == SortOption.STARS:
        return sorted(repos, key=lambda r: r.stargazers_count, reverse=True)
    if option == SortOption.FORKS:
        return sorted(repos, key=lambda r: r.forks_count, reverse=True)
    if option == SortOption.NAME:
        return sorted(repos, key=lambda r: _collation_key(r.name))
    return sorted(repos, key=lambda r: r.updated_at or _MIN_TS, reverse=True)


# -----------------------------
# Aggregations
# -----------------------------
def language_distribution(repos: Sequence[Repository], limit: int = LANGUAGE_LIMIT) -> List[LanguageShare]:
    total = len(repos)
    if total == 0:
        return []

    counts: Dict[str, int] = {}
    for r in repos:
        if r.language:
            counts[r.language] = counts.get(r.language, 0) + 1

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [
        LanguageShare(
            name=name,
            count=count,
            percentage=100.0 * count / total,
            color=language_color(name),
            total=total,
        )
        for name, count in ranked
    ]


def stars_timeline(repos: Sequence[Repository], limit: int = TIMELINE_LIMIT) -> List[TimelinePoint]:
    starred = [r for r in repos if r.stargazers_count > 0]
    ordered = sorted(starred, key=lambda r: r.created_at or _MIN_TS)[:limit]
    return [
        TimelinePoint(
            name=r.name,
            stars=r.stargazers_count,
            created=r.created_at.strftime("%b %y") if r.created_at else "",
        )
        for r in ordered
    ]


def top_repositories(repos: Sequence[Repository], limit: int = TOP_REPOS_LIMIT) -> List[Repository]:
    return sort_repositories(repos, SortOption.STARS)[:limit]


def _one_month_before(d: dt.datetime) -> dt.datetime:
    year, month = (d.year, d.month - 1) if d.month > 1 else (d.year - 1, 12)
    day = d.day
    while True:
        try:
            return d.replace(year=year, month=month, day=day)
        except ValueError:
            # e.g. Mar 31 -> Feb 28/29
            day -= 1


def activity_summary(repos: Sequence[Repository], now: Optional[dt.datetime] = None) -> ActivitySummary:
    now = now or dt.datetime.now(dt.timezone.utc)
    cutoff = _one_month_before(now)
    return ActivitySummary(
        recently_updated=sum(1 for r in repos if r.updated_at and r.updated_at > cutoff),
        starred=sum(1 for r in repos if r.stargazers_count > 0),
        forked=sum(1 for r in repos if r.forks_count > 0),
        with_issues=sum(1 for r in repos if r.open_issues_count > 0),
    )


def build_views(
    repos: Sequence[Repository],
    filter_text: str = "",
    sort_option: Any = SortOption.UPDATED,
    now: Optional[dt.datetime] = None,
) -> DashboardViews:
    """
    Recompute every derived view. Call again whenever the repositories,
    the filter text or the sort option change.
    """
    visible = sort_repositories(filter_repositories(repos, filter_text), sort_option)
    return DashboardViews(
        repositories=visible,
        languages=language_distribution(repos),
        stars_timeline=stars_timeline(repos),
        top_repositories=top_repositories(repos),
        activity=activity_summary(repos, now=now),
        total_count=len(repos),
    )
