from tripwire.github.api import API
from tripwire.github.model import (
    Account,
    AccountEmail,
    CheckRun,
    CheckRunsResponse,
    CombinedRefStatus,
    Commit,
    CommitIdentity,
    CommitStatus,
    GitHubRepository,
    Owner,
    PullRequest,
    PullRequestRef,
    Repository,
)

__all__ = [
    "API",
    "Account",
    "AccountEmail",
    "CheckRun",
    "CheckRunsResponse",
    "CombinedRefStatus",
    "Commit",
    "CommitIdentity",
    "CommitStatus",
    "GitHubRepository",
    "Owner",
    "PullRequest",
    "PullRequestRef",
    "Repository",
]
