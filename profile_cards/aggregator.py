"""
Builds one ``StatsSnapshot`` for an account.

Query order: rate-limit probe -> profile -> paginated repositories ->
one contribution window per calendar year -> per-repository star lookups ->
contribution calendar (streaks) -> per-repository language bytes.

Without a token the GraphQL steps are skipped (degraded snapshot: zero
contribution totals and streaks, language totals from repository size).
With a token, an unavailable calendar gives zero streaks and failed language
lookups fall back to the size proxy; both are logged, not raised.
"""

from __future__ import annotations
import datetime
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from dateutil import parser as dateparser

from .client import ResilientClient
from .config import DEFAULT_LOOKUP_WORKERS
from .errors import TERMINAL_ERRORS, FetchFailedError, NotFoundError
from .models import AccountProfile, ContributionDay, RepositorySummary, StatsSnapshot
from .streak import StreakStats, compute_streak

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

REPOS_PER_PAGE = 100
TOP_REPOSITORIES = 5
CALENDAR_WINDOW_DAYS = 365

YEARLY_CONTRIBUTIONS_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!){
  user(login: $login){
    contributionsCollection(from: $from, to: $to){
      totalCommitContributions
      totalPullRequestContributions
      totalIssueContributions
      commitContributionsByRepository(maxRepositories: 100){
        repository{ nameWithOwner owner{ login } }
        contributions{ totalCount }
      }
      pullRequestContributionsByRepository(maxRepositories: 100){
        repository{ nameWithOwner owner{ login } }
        contributions{ totalCount }
      }
      issueContributionsByRepository(maxRepositories: 100){
        repository{ nameWithOwner owner{ login } }
      }
    }
  }
}"""

CALENDAR_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!){
  user(login: $login){
    contributionsCollection(from: $from, to: $to){
      contributionCalendar{
        totalContributions
        weeks{
          contributionDays{ date contributionCount }
        }
      }
    }
  }
}"""


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _iso(moment: datetime.datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def top_repositories(repos: Iterable[RepositorySummary], limit: int = TOP_REPOSITORIES) -> Tuple[RepositorySummary, ...]:
    # sorted() is stable, also with reverse=True: equal star counts keep fetch order.
    return tuple(sorted(repos, key=lambda r: r.stars, reverse=True)[:limit])


def size_proxy_languages(repos: Iterable[RepositorySummary]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for repo in repos:
        if repo.language:
            totals[repo.language] = totals.get(repo.language, 0) + (repo.size or 1)
    return totals


class ContributionTotals:
    """Accumulates windowed contribution results across years."""

    def __init__(self, login: str):
        self.login = login.lower()
        self.commits = 0
        self.pull_requests = 0
        self.issues = 0
        self.commits_to_mine = 0
        self.commits_to_others = 0
        self.pull_requests_to_others = 0
        self.repositories: Dict[str, str] = {}  # nameWithOwner -> owner login

    def is_own(self, owner: str) -> bool:
        return owner.lower() == self.login

    def _touch(self, entry: Dict[str, Any]) -> Tuple[Optional[str], bool, int]:
        repo = entry.get("repository") or {}
        full_name = repo.get("nameWithOwner")
        if not full_name:
            return None, False, 0
        owner = (repo.get("owner") or {}).get("login") or full_name.split("/")[0]
        self.repositories[full_name] = owner
        count = (entry.get("contributions") or {}).get("totalCount") or 0
        return full_name, self.is_own(owner), count

    def add_window(self, collection: Dict[str, Any]) -> None:
        self.commits += collection.get("totalCommitContributions") or 0
        self.pull_requests += collection.get("totalPullRequestContributions") or 0
        self.issues += collection.get("totalIssueContributions") or 0
        for entry in collection.get("commitContributionsByRepository") or []:
            full_name, own, count = self._touch(entry)
            if full_name and count > 0:
                if own:
                    self.commits_to_mine += count
                else:
                    self.commits_to_others += count
        for entry in collection.get("pullRequestContributionsByRepository") or []:
            full_name, own, count = self._touch(entry)
            if full_name and count > 0 and not own:
                self.pull_requests_to_others += count
        for entry in collection.get("issueContributionsByRepository") or []:
            self._touch(entry)

    @property
    def own_repositories(self) -> int:
        return sum(1 for owner in self.repositories.values() if self.is_own(owner))

    @property
    def foreign_repositories(self) -> List[str]:
        return [name for name, owner in self.repositories.items() if not self.is_own(owner)]


class ContributionAggregator:

    def __init__(
        self,
        client: ResilientClient,
        max_workers: int = DEFAULT_LOOKUP_WORKERS,
        clock: Callable[[], datetime.datetime] = utcnow,
    ):
        self.client = client
        self.transport = client.transport
        self.max_workers = max(1, max_workers)
        self.clock = clock

    # ------------------ Entry point ------------------
    def aggregate(self, login: str) -> StatsSnapshot:
        t0 = time.time()
        try:
            snapshot = self._aggregate(login)
        except TERMINAL_ERRORS:
            raise
        except Exception as e:
            logger.error("[%s] aggregation failed: %s", login, e)
            raise FetchFailedError(login) from e
        logger.info("[%s] aggregated in %.2fs", login, time.time() - t0)
        return snapshot

    def _aggregate(self, login: str) -> StatsSnapshot:
        now = self.clock()
        privileged = self.transport.authenticated
        self.client.probe_rate_limit()

        user = self.fetch_profile(login)
        repos = self.fetch_repositories(user.login)
        total_stars = sum(r.stars for r in repos)
        total_forks = sum(r.forks for r in repos)

        totals = ContributionTotals(user.login)
        streak = StreakStats()
        if privileged:
            for year in range(user.created_at.year, now.year + 1):
                totals.add_window(self.fetch_year(user.login, year))
            streak = self.fetch_streak(user.login, now)
            languages = self.fetch_languages(user.login, repos)
        else:
            logger.info(
                "[%s] no token: skipping contribution history and streaks, "
                "using repository size as language proxy", login,
            )
            languages = size_proxy_languages(repos)

        indirect_stars = self.fetch_indirect_stars(totals.foreign_repositories)
        own = totals.own_repositories

        return StatsSnapshot(
            user=user,
            repositories=tuple(repos),
            total_stars=total_stars,
            total_forks=total_forks,
            total_commits=totals.commits,
            total_pull_requests=totals.pull_requests,
            total_issues=totals.issues,
            created_repositories=len(repos),
            contributed_to=len(totals.repositories),
            commits_to_my_repositories=totals.commits_to_mine,
            commits_to_another_repositories=totals.commits_to_others,
            pull_requests_to_another_repositories=totals.pull_requests_to_others,
            contributed_to_own_repositories=own,
            contributed_to_not_owner_repositories=len(totals.repositories) - own,
            direct_stars=total_stars,
            indirect_stars=indirect_stars,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            total_contributions=streak.total_contributions,
            languages=languages,
            top_repositories=top_repositories(repos),
            last_fetch=now,
            privileged=privileged,
        )

    # ------------------ Remote steps ------------------
    def fetch_profile(self, login: str) -> AccountProfile:
        try:
            data = self.client.execute(lambda: self.transport.get_json(f"/users/{login}"), "user_getter")
        except NotFoundError as e:
            raise NotFoundError(f'User "{login}" not found') from e
        return AccountProfile(
            login=data["login"],
            name=data.get("name"),
            bio=data.get("bio"),
            avatar_url=data.get("avatar_url") or "",
            followers=data.get("followers") or 0,
            following=data.get("following") or 0,
            public_repos=data.get("public_repos") or 0,
            public_gists=data.get("public_gists") or 0,
            created_at=dateparser.isoparse(data["created_at"]),
        )

    def fetch_repositories(self, login: str) -> List[RepositorySummary]:
        repos: List[RepositorySummary] = []
        page = 1
        while True:
            params = {"per_page": REPOS_PER_PAGE, "page": page, "sort": "updated"}
            data = self.client.execute(
                lambda: self.transport.get_json(f"/users/{login}/repos", params), "repos"
            )
            for repo in data:
                repos.append(RepositorySummary(
                    name=repo["name"],
                    stars=repo.get("stargazers_count") or 0,
                    forks=repo.get("forks_count") or 0,
                    language=repo.get("language") or None,
                    size=repo.get("size") or 0,
                ))
            if len(data) < REPOS_PER_PAGE:
                break
            page += 1
        logger.debug("[%s] %d repositories over %d page(s)", login, len(repos), page)
        return repos

    def fetch_year(self, login: str, year: int) -> Dict[str, Any]:
        variables = {
            "login": login,
            "from": f"{year}-01-01T00:00:00Z",
            "to": f"{year}-12-31T23:59:59Z",
        }
        data = self.client.execute(
            lambda: self.transport.graphql(YEARLY_CONTRIBUTIONS_QUERY, variables, "yearly_contributions"),
            f"yearly_contributions {year}",
        )
        return data["user"]["contributionsCollection"]

    def fetch_streak(self, login: str, now: datetime.datetime) -> StreakStats:
        """Streaks over the trailing calendar window; zeros when the calendar is unavailable."""
        variables = {
            "login": login,
            "from": _iso(now - datetime.timedelta(days=CALENDAR_WINDOW_DAYS)),
            "to": _iso(now),
        }
        try:
            data = self.client.execute(
                lambda: self.transport.graphql(CALENDAR_QUERY, variables, "contribution_calendar"),
                "contribution_calendar",
            )
            calendar = data["user"]["contributionsCollection"]["contributionCalendar"]
            days = [
                ContributionDay(d["date"], d["contributionCount"])
                for week in calendar["weeks"]
                for d in week["contributionDays"]
            ]
        except TERMINAL_ERRORS:
            raise
        except Exception as e:
            logger.warning("[%s] contribution calendar unavailable, streaks set to 0: %s", login, e)
            return StreakStats()
        return compute_streak(days, calendar["totalContributions"], now.date().isoformat())

    def fetch_indirect_stars(self, full_names: List[str]) -> int:
        def stars(full_name: str) -> int:
            data = self.client.execute(
                lambda: self.transport.get_json(f"/repos/{full_name}"), f"repo {full_name}"
            )
            return data.get("stargazers_count") or 0

        targets = [name for name in full_names if name.count("/") == 1]
        return sum(self._map_bounded(stars, targets))

    def fetch_languages(self, login: str, repos: List[RepositorySummary]) -> Dict[str, int]:
        def breakdown(repo: RepositorySummary) -> Dict[str, int]:
            return self.client.execute(
                lambda: self.transport.get_json(f"/repos/{login}/{repo.name}/languages"),
                f"languages {repo.name}",
            )

        targets = [r for r in repos if r.language]
        results = self._map_bounded(breakdown, targets)
        if targets and not results:
            logger.warning("[%s] no language breakdown available, using repository size", login)
            return size_proxy_languages(targets)
        totals: Dict[str, int] = {}
        for result in results:
            for lang, size in result.items():
                totals[lang] = totals.get(lang, 0) + int(size)
        return totals

    # ------------------ Helpers ------------------
    def _map_bounded(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        """Runs ``fn`` over ``items`` with bounded concurrency, skipping failures."""
        if not items:
            return []
        results: List[R] = []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as pool:
            futures = [(item, pool.submit(fn, item)) for item in items]
            for item, future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning("Skipping %s: %s", getattr(item, "name", item), e)
        return results
