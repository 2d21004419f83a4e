import asyncio
import functools
import logging
from pathlib import Path
from typing import List, Tuple

import aiohttp
import cachetools
import typer
from tabulate import tabulate

from tripwire import config
from tripwire.accounts import StaticAccountsStore, account_from_config
from tripwire.alive import ChecksFailedAliveEvent, LocalAliveStore
from tripwire.checks import count_failed_checks, get_checks_for_ref
from tripwire.git import get_commit
from tripwire.github.api import API
from tripwire.github.model import (
    Account,
    GitHubRepository,
    Owner,
    PullRequest,
    Repository,
)
from tripwire.logger import configure_logging
from tripwire.settings import NotificationsSetting, get_storage
from tripwire.store import NotificationsStore


logger = logging.getLogger("tripwire")


app = typer.Typer()
httpcache = cachetools.LRUCache(maxsize=config.HTTP_CACHE_SIZE)


@app.callback()
def init():
    configure_logging(logger)


def _require_account() -> Account:
    account = account_from_config()
    if account is None:
        typer.echo("GITHUB_TOKEN is not set", err=True)
        raise typer.Exit(1)
    return account


def _split_repo(repo: str) -> Tuple[str, str]:
    owner, _, name = repo.partition("/")
    if not owner or not name:
        raise typer.BadParameter(f"Expected OWNER/NAME, got {repo!r}")
    return owner, name


class APIPullRequestCoordinator:
    """Lists the open pull requests straight from the API."""

    def __init__(self, api: API):
        self.api = api

    async def get_all_pull_requests(self, repository: Repository) -> List[PullRequest]:
        gh_repo = repository.github_repository
        if gh_repo is None:
            return []
        prs = await self.api.fetch_pull_requests(gh_repo.owner.login, gh_repo.name)
        return prs or []


@app.command()
def enable():
    with get_storage() as storage:
        NotificationsSetting(storage).set_enabled(True)
    typer.echo("Notifications enabled")


@app.command()
def disable():
    with get_storage() as storage:
        NotificationsSetting(storage).set_enabled(False)
    typer.echo("Notifications disabled")


@app.command()
def status():
    with get_storage() as storage:
        enabled = NotificationsSetting(storage).is_enabled()
    typer.echo(f"Notifications {'enabled' if enabled else 'disabled'}")


@app.command()
def checks(repo: str, ref: str):
    owner, name = _split_repo(repo)
    account = _require_account()

    async def handle():
        async with aiohttp.ClientSession() as session:
            api = API.from_account(account, session, cache=httpcache)
            return await get_checks_for_ref(api, owner, name, ref)

    result = asyncio.run(handle())
    if result is None:
        typer.echo(f"No checks found for {repo}@{ref}")
        raise typer.Exit(1)

    rows = [
        (
            c.name,
            c.status.value,
            c.conclusion.value if c.conclusion is not None else "",
            c.url or "",
        )
        for c in result
    ]
    typer.echo(tabulate(rows, headers=["name", "status", "conclusion", "url"]))
    typer.echo(f"{count_failed_checks(result)} of {len(result)} checks failed")


@app.command()
def commit(path: Path, sha: str):
    repository = Repository(name=path.resolve().name, path=str(path))
    result = asyncio.run(get_commit(repository, sha))
    if result is None:
        typer.echo(f"Commit {sha} not found in {path}")
        raise typer.Exit(1)
    typer.echo(f"{result.sha} {result.author.email} {result.summary}")


@app.command()
def replay(path: Path, repo: str, number: int, sha: str):
    """Run a checks failed event for PR NUMBER at SHA through the pipeline."""
    owner, name = _split_repo(repo)
    account = _require_account()

    repository = Repository(
        name=name,
        path=str(path),
        github_repository=GitHubRepository(
            owner=Owner(login=owner), name=name, endpoint=account.endpoint
        ),
    )

    async def handle():
        async with aiohttp.ClientSession() as session:
            api_factory = functools.partial(
                API.from_account, session=session, cache=httpcache
            )
            with get_storage() as storage:
                store = NotificationsStore(
                    StaticAccountsStore([account]),
                    LocalAliveStore(),
                    APIPullRequestCoordinator(api_factory(account)),
                    NotificationsSetting(storage),
                    api_factory,
                )
                store.select_repository(repository)
                return await store.handle_checks_failed_event(
                    ChecksFailedAliveEvent(pull_request_number=number, commit_sha=sha)
                )

    outcome = asyncio.run(handle())
    typer.echo(outcome.value)
