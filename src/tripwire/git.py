import asyncio
import logging
import re
from typing import List, Optional, Tuple

from tripwire.github.model import Commit, CommitIdentity, Repository

logger = logging.getLogger("tripwire")

_SHA_RE = re.compile(r"^[0-9a-fA-F]{4,64}$")

# NUL separated: sha, author name, author email, subject
_COMMIT_FORMAT = "%H%x00%an%x00%ae%x00%s"


async def run_git(args: List[str], cwd: str) -> Tuple[int, str, str]:
    proc = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc.returncode, stdout.decode(errors="replace"), stderr.decode(
        errors="replace"
    )


async def get_commit(repository: Repository, sha: str) -> Optional[Commit]:
    """Look up a commit in the local clone, ``None`` if it isn't there."""
    if not _SHA_RE.match(sha):
        logger.debug("Not a commit sha: %r", sha)
        return None

    try:
        rc, out, err = await run_git(
            ["show", "-s", f"--format={_COMMIT_FORMAT}", f"{sha}^{{commit}}"],
            cwd=repository.path,
        )
    except OSError as e:
        logger.warning("Unable to run git in %s: %s", repository.path, e)
        return None

    if rc != 0:
        logger.debug("Commit %s not found in %s: %s", sha, repository.path, err.strip())
        return None

    fields = out.rstrip("\n").split("\x00")
    if len(fields) != 4:
        logger.warning("Unexpected git output for commit %s", sha)
        return None

    full_sha, author_name, author_email, summary = fields
    return Commit(
        sha=full_sha,
        summary=summary,
        author=CommitIdentity(name=author_name, email=author_email),
    )
