from typing import Dict, Optional, Set
import logging

from tripwire.github.model import Commit

logger = logging.getLogger("tripwire")


class CommitCache:
    """Process-lifetime memo of fetched commits plus the set of commit SHAs
    not worth looking at again.

    Neither table is ever evicted. A SHA that gets skipped is dropped from the
    commit table, so each resolved SHA lives in exactly one of the two.
    """

    commits: Dict[str, Commit]
    skipped: Set[str]

    def __init__(self):
        self.commits = {}
        self.skipped = set()

    def get(self, sha: str) -> Optional[Commit]:
        return self.commits.get(sha)

    def put(self, sha: str, commit: Commit) -> None:
        if sha in self.skipped:
            return
        self.commits[sha] = commit

    def should_skip(self, sha: str) -> bool:
        return sha in self.skipped

    def skip(self, sha: str) -> None:
        logger.debug("Skipping commit %s from now on", sha)
        self.skipped.add(sha)
        self.commits.pop(sha, None)

    def __contains__(self, sha: str) -> bool:
        return sha in self.commits

    def __len__(self) -> int:
        return len(self.commits)
