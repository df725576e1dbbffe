"""Privileged mode test: full aggregation (yearly contributions, indirect stars,
streaks, language bytes) using mocked REST and GraphQL responses.
Run: pytest -q
"""
import datetime
from unittest.mock import patch

from profile_cards.aggregator import ContributionAggregator
from profile_cards.client import ResilientClient
from profile_cards.github import GitHubTransport

USER = "octo"
NOW = datetime.datetime(2024, 6, 15, 12, 0, tzinfo=datetime.timezone.utc)

# Mock payload builders

USER_JSON = {
    "login": USER,
    "name": "Octo Cat",
    "bio": "Builds things",
    "avatar_url": "https://avatars.example/octo",
    "followers": 7,
    "following": 2,
    "public_repos": 3,
    "public_gists": 1,
    "created_at": "2023-03-01T00:00:00Z",
}
REPOS_JSON = [
    {"name": "repo1", "stargazers_count": 5, "forks_count": 1, "language": "Python", "size": 100},
    {"name": "repo2", "stargazers_count": 5, "forks_count": 0, "language": "Go", "size": 50},
    {"name": "repo3", "stargazers_count": 9, "forks_count": 2, "language": None, "size": 10},
]
RATE_JSON = {"rate": {"limit": 5000, "remaining": 4999, "reset": 1718452800}}
FOREIGN_REPOS = {"other/lib": {"stargazers_count": 100}, "third/app": {"stargazers_count": 20}}


def repo_entry(full_name, count=None):
    entry = {"repository": {"nameWithOwner": full_name, "owner": {"login": full_name.split("/")[0]}}}
    if count is not None:
        entry["contributions"] = {"totalCount": count}
    return entry


YEARS = {
    "2023": {
        "totalCommitContributions": 10,
        "totalPullRequestContributions": 2,
        "totalIssueContributions": 1,
        "commitContributionsByRepository": [repo_entry("octo/repo1", 6), repo_entry("other/lib", 4)],
        "pullRequestContributionsByRepository": [repo_entry("other/lib", 2)],
        "issueContributionsByRepository": [repo_entry("third/app")],
    },
    "2024": {
        "totalCommitContributions": 5,
        "totalPullRequestContributions": 1,
        "totalIssueContributions": 0,
        # owner casing differs from the queried login
        "commitContributionsByRepository": [repo_entry("OCTO/repo2", 5)],
        "pullRequestContributionsByRepository": [repo_entry("other/lib", 1)],
        "issueContributionsByRepository": [],
    },
}
CALENDAR_JSON = {
    "totalContributions": 4,
    "weeks": [{"contributionDays": [
        {"date": "2024-06-13", "contributionCount": 1},
        {"date": "2024-06-14", "contributionCount": 2},
        {"date": "2024-06-15", "contributionCount": 1},
    ]}],
}


class FakeResp:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.headers = {}
        self.text = str(payload)
    def json(self):
        return self.payload


def fake_get(url, params=None, timeout=30):
    path = url.replace("https://api.github.com", "")
    if path == "/rate_limit":
        return FakeResp(RATE_JSON)
    if path == f"/users/{USER}":
        return FakeResp(USER_JSON)
    if path == f"/users/{USER}/repos":
        return FakeResp(REPOS_JSON if params["page"] == 1 else [])
    if path == f"/repos/{USER}/repo1/languages":
        return FakeResp({"Python": 1000, "Shell": 200})
    if path == f"/repos/{USER}/repo2/languages":
        return FakeResp({"message": "Server Error"}, 500)
    full_name = path[len("/repos/"):]
    if full_name in FOREIGN_REPOS:
        return FakeResp(FOREIGN_REPOS[full_name])
    return FakeResp({"message": "Not Found"}, 404)


def fake_post(url, json=None, timeout=30):
    q = (json or {}).get("query", "")
    variables = (json or {}).get("variables", {})
    if "contributionCalendar" in q:
        return FakeResp({"data": {"user": {"contributionsCollection": {"contributionCalendar": CALENDAR_JSON}}}})
    if "commitContributionsByRepository" in q:
        year = variables["from"][:4]
        return FakeResp({"data": {"user": {"contributionsCollection": YEARS[year]}}})
    return FakeResp({"data": {}})


def make_aggregator():
    client = ResilientClient(GitHubTransport(token="secret"), sleep=lambda s: None)
    return ContributionAggregator(client, max_workers=4, clock=lambda: NOW)


@patch("requests.Session.post", side_effect=fake_post)
@patch("requests.Session.get", side_effect=fake_get)
def test_heavy_mode(mock_get, mock_post):
    stats = make_aggregator().aggregate(USER)

    assert stats.privileged
    assert stats.total_stars == stats.direct_stars == 19
    assert stats.total_forks == 3
    assert stats.created_repositories == 3
    # one windowed query per year 2023..2024 plus the calendar
    assert mock_post.call_count == 3

    assert stats.total_commits == 15
    assert stats.total_pull_requests == 3
    assert stats.total_issues == 1
    assert stats.commits_to_my_repositories == 11
    assert stats.commits_to_another_repositories == 4
    assert stats.pull_requests_to_another_repositories == 3
    assert stats.contributed_to == 4
    assert stats.contributed_to_own_repositories == 2
    assert stats.contributed_to_not_owner_repositories == 2

    # other/lib seen through commits and PRs, counted once
    assert stats.indirect_stars == 120

    assert (stats.current_streak, stats.longest_streak, stats.total_contributions) == (2, 3, 4)

    # repo2's language call keeps failing and is skipped; repo3 has no language
    assert stats.languages == {"Python": 1000, "Shell": 200}

    assert [r.name for r in stats.top_repositories] == ["repo3", "repo1", "repo2"]
    assert stats.last_fetch == NOW


@patch("requests.Session.post", side_effect=fake_post)
@patch("requests.Session.get", side_effect=fake_get)
def test_counts_are_non_negative(mock_get, mock_post):
    stats = make_aggregator().aggregate(USER)
    for name, value in vars(stats).items():
        if isinstance(value, int) and not isinstance(value, bool):
            assert value >= 0, name
    assert len(stats.top_repositories) <= 5


def failing_calendar_post(url, json=None, timeout=30):
    if "contributionCalendar" in (json or {}).get("query", ""):
        return FakeResp({"message": "Bad Gateway"}, 502)
    return fake_post(url, json=json, timeout=timeout)


def no_languages_get(url, params=None, timeout=30):
    if url.endswith("/languages"):
        return FakeResp({"message": "Server Error"}, 500)
    return fake_get(url, params=params, timeout=timeout)


@patch("requests.Session.post", side_effect=failing_calendar_post)
@patch("requests.Session.get", side_effect=no_languages_get)
def test_privileged_steps_degrade_instead_of_failing(mock_get, mock_post):
    stats = make_aggregator().aggregate(USER)

    assert stats.privileged
    assert (stats.current_streak, stats.longest_streak, stats.total_contributions) == (0, 0, 0)
    # contribution windows still counted
    assert stats.total_commits == 15
    # every language lookup failed: repository size stands in
    assert stats.languages == {"Python": 100, "Go": 50}


def test_repository_pagination_stops_on_short_page():
    pages = {1: [{"name": f"r{i}", "stargazers_count": i % 3} for i in range(100)],
             2: [{"name": "last", "stargazers_count": 50}]}
    calls = []

    def paged_get(url, params=None, timeout=30):
        calls.append(params["page"])
        return FakeResp(pages.get(params["page"], []))

    with patch("requests.Session.get", side_effect=paged_get):
        repos = make_aggregator().fetch_repositories(USER)

    assert calls == [1, 2]
    assert len(repos) == 101
    assert repos[-1].name == "last"
