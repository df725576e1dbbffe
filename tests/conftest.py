import dataclasses
import datetime

import pytest

from profile_cards.models import AccountProfile, RepositorySummary, StatsSnapshot

FETCHED_AT = datetime.datetime(2024, 6, 15, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def make_snapshot():
    """Factory for synthetic snapshots; keyword arguments override any field."""
    def factory(user=None, **overrides):
        profile = AccountProfile(
            login="octo",
            name="Octo Cat",
            bio="Builds things",
            avatar_url="https://avatars.example/octo",
            followers=10,
            following=3,
            public_repos=2,
            public_gists=1,
            created_at=datetime.datetime(2018, 1, 1, tzinfo=datetime.timezone.utc),
        )
        if user:
            profile = dataclasses.replace(profile, **user)
        repos = (
            RepositorySummary("alpha", 12, 3, "Python", 300),
            RepositorySummary("beta", 4, 1, "Go", 120),
        )
        values = dict(
            user=profile,
            repositories=repos,
            total_stars=16,
            total_forks=4,
            total_commits=250,
            total_pull_requests=12,
            total_issues=6,
            created_repositories=2,
            contributed_to=5,
            commits_to_my_repositories=200,
            commits_to_another_repositories=50,
            pull_requests_to_another_repositories=10,
            contributed_to_own_repositories=2,
            contributed_to_not_owner_repositories=3,
            direct_stars=16,
            indirect_stars=40,
            current_streak=3,
            longest_streak=9,
            total_contributions=410,
            languages={"Python": 3000, "Go": 1200, "Shell": 100},
            top_repositories=repos,
            last_fetch=FETCHED_AT,
            privileged=True,
        )
        values.update(overrides)
        return StatsSnapshot(**values)
    return factory
