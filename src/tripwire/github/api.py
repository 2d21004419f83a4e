import logging
from typing import Any, List, Mapping, Optional

import aiohttp
import gidgethub
import pydantic
from gidgethub import aiohttp as gh_aiohttp
from gidgethub.abc import GitHubAPI

from tripwire.github.model import (
    Account,
    CheckRunsResponse,
    CombinedRefStatus,
    Commit,
    CommitIdentity,
    PullRequest,
)
from tripwire.metric import error_counter, record_api_call

logger = logging.getLogger("tripwire")


class API:
    """Thin wrapper over gidgethub for the endpoints the notification pipeline
    needs.

    Every fetch returns ``None`` instead of raising when the request fails,
    so callers can treat "no data" and "API failure" the same way.
    """

    gh: GitHubAPI
    account: Optional[Account]

    call_count: int

    def __init__(self, gh: GitHubAPI, account: Optional[Account] = None):
        self.gh = gh
        self.account = account
        self.call_count = 0

    @classmethod
    def from_account(
        cls,
        account: Account,
        session: aiohttp.ClientSession,
        cache: Optional[Any] = None,
    ) -> "API":
        gh = gh_aiohttp.GitHubAPI(
            session,
            account.login,
            oauth_token=account.token,
            cache=cache,
            base_url=account.endpoint,
        )
        return cls(gh, account)

    async def _getitem(
        self, url: str, url_vars: Mapping[str, str]
    ) -> Optional[Mapping[str, Any]]:
        self.call_count += 1
        record_api_call(url)
        try:
            return await self.gh.getitem(url, url_vars=url_vars)
        except (gidgethub.GitHubException, aiohttp.ClientError) as e:
            error_counter.labels(context="api").inc()
            logger.warning(
                "GitHub API request to %s %s failed: %r", url, url_vars, e
            )
            return None

    async def fetch_combined_ref_status(
        self, owner: str, name: str, ref: str
    ) -> Optional[CombinedRefStatus]:
        url = "/repos/{owner}/{name}/commits/{ref}/status"
        url_vars = {"owner": owner, "name": name, "ref": ref}
        logger.debug("Get combined status for %s/%s@%s", owner, name, ref)
        data = await self._getitem(url, url_vars)
        if data is None:
            return None
        try:
            return CombinedRefStatus.model_validate(data)
        except pydantic.ValidationError:
            logger.warning("Unexpected combined status payload for %s/%s", owner, name)
            return None

    async def fetch_ref_check_runs(
        self, owner: str, name: str, ref: str
    ) -> Optional[CheckRunsResponse]:
        url = "/repos/{owner}/{name}/commits/{ref}/check-runs?per_page=100"
        url_vars = {"owner": owner, "name": name, "ref": ref}
        logger.debug("Get check runs for %s/%s@%s", owner, name, ref)
        data = await self._getitem(url, url_vars)
        if data is None:
            return None
        try:
            return CheckRunsResponse.model_validate(data)
        except pydantic.ValidationError:
            logger.warning("Unexpected check runs payload for %s/%s", owner, name)
            return None

    async def fetch_commit(self, owner: str, name: str, sha: str) -> Optional[Commit]:
        url = "/repos/{owner}/{name}/commits/{sha}"
        url_vars = {"owner": owner, "name": name, "sha": sha}
        logger.debug("Get commit %s/%s@%s", owner, name, sha)
        data = await self._getitem(url, url_vars)
        if data is None:
            return None
        try:
            commit = data["commit"]
            return Commit(
                sha=data["sha"],
                summary=commit["message"].split("\n", 1)[0],
                author=CommitIdentity.model_validate(commit["author"]),
            )
        except (KeyError, TypeError, pydantic.ValidationError):
            logger.warning("Unexpected commit payload for %s/%s", owner, name)
            return None

    async def fetch_pull_requests(
        self, owner: str, name: str
    ) -> Optional[List[PullRequest]]:
        url = "/repos/{owner}/{name}/pulls"
        url_vars = {"owner": owner, "name": name}
        logger.debug("Get open pulls for %s/%s", owner, name)
        self.call_count += 1
        record_api_call(url)
        try:
            items = self.gh.getiter(url, url_vars=url_vars)
            return [PullRequest.model_validate(item) async for item in items]
        except (
            gidgethub.GitHubException,
            aiohttp.ClientError,
            pydantic.ValidationError,
        ) as e:
            error_counter.labels(context="api").inc()
            logger.warning(
                "GitHub API request to %s %s failed: %r", url, url_vars, e
            )
            return None
