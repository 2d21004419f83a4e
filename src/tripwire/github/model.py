from datetime import datetime
from typing import List, Literal, Optional, Set

import pydantic


class Model(pydantic.BaseModel):
    pass


class FrozenModel(Model):
    model_config = pydantic.ConfigDict(frozen=True)


class Owner(FrozenModel):
    login: str


class GitHubRepository(FrozenModel):
    owner: Owner
    name: str
    endpoint: str

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


class Repository(FrozenModel):
    """A local repository, optionally linked to a repository on GitHub."""

    name: str
    path: str
    github_repository: Optional[GitHubRepository] = None

    def __str__(self) -> str:
        if self.github_repository is not None:
            return f"Repository({self.github_repository.full_name}, {self.path})"
        return f"Repository({self.name}, {self.path})"


class PullRequestRef(FrozenModel):
    ref: str
    sha: Optional[str] = None


class PullRequest(FrozenModel):
    number: int
    title: str
    head: PullRequestRef

    def __str__(self) -> str:
        return f"PR(#{self.number}, {self.head.ref})"


class CommitIdentity(FrozenModel):
    name: Optional[str] = None
    email: str


class Commit(FrozenModel):
    sha: str
    summary: str
    author: CommitIdentity


class AccountEmail(FrozenModel):
    email: str
    verified: bool = True
    primary: bool = False


class Account(FrozenModel):
    login: str
    endpoint: str
    token: Optional[str] = None
    emails: List[AccountEmail] = pydantic.Field(default_factory=list)

    @property
    def verified_emails(self) -> Set[str]:
        return {e.email for e in self.emails if e.verified}


class CommitStatus(Model):
    id: int
    context: str
    state: Literal["error", "failure", "pending", "success"]
    description: Optional[str] = None
    target_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CombinedRefStatus(Model):
    state: Optional[str] = None
    sha: Optional[str] = None
    total_count: int = 0
    statuses: List[CommitStatus] = pydantic.Field(default_factory=list)


class App(Model):
    id: int
    slug: Optional[str] = None
    name: Optional[str] = None


class PartialCheckSuite(Model):
    id: int


class CheckRunOutput(Model):
    title: Optional[str] = None
    summary: Optional[str] = None
    text: Optional[str] = None


class CheckRun(Model):
    id: int
    name: str
    # GitHub adds values over time, e.g. "startup_failure"
    status: str = "queued"
    conclusion: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    html_url: Optional[str] = None
    app: Optional[App] = None
    check_suite: Optional[PartialCheckSuite] = None
    output: Optional[CheckRunOutput] = None


class CheckRunsResponse(Model):
    total_count: int = 0
    check_runs: List[CheckRun] = pydantic.Field(default_factory=list)
