from typing import Dict, List, Optional

import pytest

from tripwire.accounts import StaticAccountsStore
from tripwire.alive import LocalAliveStore
from tripwire.github.model import (
    Account,
    AccountEmail,
    CheckRunsResponse,
    CombinedRefStatus,
    Commit,
    CommitIdentity,
    GitHubRepository,
    Owner,
    PullRequest,
    PullRequestRef,
    Repository,
)
from tripwire.notifications import Notification
from tripwire.settings import MemoryBooleanStorage, NotificationsSetting
from tripwire.store import NotificationsStore

ENDPOINT = "https://api.github.com"
SHA = "abc1234567890def1234567890abcdef12345678"


def make_repository(name: str = "repo", owner: str = "org") -> Repository:
    return Repository(
        name=name,
        path=f"/src/{name}",
        github_repository=GitHubRepository(
            owner=Owner(login=owner), name=name, endpoint=ENDPOINT
        ),
    )


def make_pull_request(number: int = 42, title: str = "Fix the frobnicator"):
    return PullRequest(
        number=number, title=title, head=PullRequestRef(ref="fix-frob", sha=SHA)
    )


def make_account(*emails: str, verified: bool = True) -> Account:
    return Account(
        login="octocat",
        endpoint=ENDPOINT,
        token="token",
        emails=[AccountEmail(email=e, verified=verified) for e in emails],
    )


def make_commit(sha: str = SHA, email: str = "me@example.com") -> Commit:
    return Commit(
        sha=sha,
        summary="Fix the frobnicator",
        author=CommitIdentity(name="Me", email=email),
    )


def make_status(context: str, state: str, id: int = 1) -> dict:
    return {
        "id": id,
        "context": context,
        "state": state,
        "description": f"{context} {state}",
        "target_url": f"https://ci.example.com/{id}",
        "created_at": "2026-02-16T09:00:00Z",
        "updated_at": "2026-02-16T09:01:00Z",
    }


def make_check_run(
    name: str, conclusion: Optional[str], id: int, status: str = "completed"
) -> dict:
    return {
        "id": id,
        "name": name,
        "status": status,
        "conclusion": conclusion,
        "started_at": "2026-02-16T10:00:00Z",
        "completed_at": "2026-02-16T10:03:00Z" if status == "completed" else None,
        "html_url": f"https://github.com/org/repo/runs/{id}",
        "app": {"id": 15368, "slug": "github-actions", "name": "GitHub Actions"},
        "check_suite": {"id": 77},
    }


class FakeAPI:
    def __init__(self, statuses=None, check_runs=None, on_fetch=None):
        self.statuses = statuses
        self.check_runs = check_runs
        self.on_fetch = on_fetch
        self.calls: List[str] = []

    async def fetch_combined_ref_status(self, owner, name, ref):
        self.calls.append(f"status:{owner}/{name}@{ref}")
        if self.on_fetch is not None:
            self.on_fetch()
        if self.statuses is None:
            return None
        return CombinedRefStatus(statuses=self.statuses)

    async def fetch_ref_check_runs(self, owner, name, ref):
        self.calls.append(f"check-runs:{owner}/{name}@{ref}")
        if self.check_runs is None:
            return None
        return CheckRunsResponse(check_runs=self.check_runs)


class FakePullRequestCoordinator:
    def __init__(self, pull_requests: List[PullRequest]):
        self.pull_requests = pull_requests
        self.calls = 0

    async def get_all_pull_requests(self, repository):
        self.calls += 1
        return list(self.pull_requests)


class FakeCommitLookup:
    def __init__(self, commits: Dict[str, Commit]):
        self.commits = commits
        self.calls: List[str] = []

    async def __call__(self, repository, sha):
        self.calls.append(sha)
        return self.commits.get(sha)


class RecordingNotification(Notification):
    shown: List["RecordingNotification"] = []

    def show(self) -> None:
        RecordingNotification.shown.append(self)


@pytest.fixture
def shown():
    RecordingNotification.shown = []
    yield RecordingNotification.shown
    RecordingNotification.shown = []


class Pipeline:
    """A NotificationsStore wired to fakes."""

    def __init__(self, *, commits=None, statuses=None, check_runs=None, emails=None):
        self.repository = make_repository()
        self.pull_request = make_pull_request()
        self.account = make_account(*(emails or ["me@example.com"]))
        self.api = FakeAPI(
            statuses=[] if statuses is None else statuses,
            check_runs=[] if check_runs is None else check_runs,
        )
        self.commit_lookup = FakeCommitLookup(
            {SHA: make_commit()} if commits is None else commits
        )
        self.pull_requests = FakePullRequestCoordinator([self.pull_request])
        self.alive_store = LocalAliveStore()
        self.storage = MemoryBooleanStorage()
        self.api_accounts: List[Account] = []

        def api_factory(account):
            self.api_accounts.append(account)
            return self.api

        self.store = NotificationsStore(
            StaticAccountsStore([self.account]),
            self.alive_store,
            self.pull_requests,
            NotificationsSetting(self.storage),
            api_factory,
            commit_lookup=self.commit_lookup,
            notification_factory=RecordingNotification,
        )


@pytest.fixture
def make_pipeline(shown):
    def factory(**kwargs) -> Pipeline:
        return Pipeline(**kwargs)

    return factory
