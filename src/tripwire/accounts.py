from typing import List, Optional, Protocol
import logging

from tripwire import config
from tripwire.github.model import Account, AccountEmail, GitHubRepository

logger = logging.getLogger("tripwire")


class AccountsStore(Protocol):
    async def get_all(self) -> List[Account]:
        ...


class StaticAccountsStore:
    accounts: List[Account]

    def __init__(self, accounts: List[Account]):
        self.accounts = list(accounts)

    async def get_all(self) -> List[Account]:
        return list(self.accounts)


def _normalize_endpoint(endpoint: str) -> str:
    return endpoint.rstrip("/")


async def get_account_for_repository(
    accounts_store: AccountsStore, repository: GitHubRepository
) -> Optional[Account]:
    endpoint = _normalize_endpoint(repository.endpoint)
    for account in await accounts_store.get_all():
        if _normalize_endpoint(account.endpoint) == endpoint:
            return account
    logger.debug("No account signed in to %s", repository.endpoint)
    return None


def account_from_config() -> Optional[Account]:
    if config.GITHUB_TOKEN is None:
        return None
    return Account(
        login=config.GITHUB_LOGIN or "tripwire",
        endpoint=config.GITHUB_API_URL,
        token=config.GITHUB_TOKEN,
        emails=[AccountEmail(email=e) for e in config.GITHUB_EMAILS],
    )
