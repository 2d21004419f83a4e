from enum import Enum
import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from gidgethub.sansio import Event
import pydantic

from tripwire import checks as ci_checks
from tripwire.accounts import AccountsStore, get_account_for_repository
from tripwire.alive import (
    CHECKS_FAILED,
    AliveStore,
    ChecksFailedAliveEvent,
    EventRouter,
)
from tripwire.cache import CommitCache
from tripwire.checks import RefCheck
from tripwire.git import get_commit
from tripwire.github.api import API
from tripwire.github.model import Account, Commit, PullRequest, Repository
from tripwire.metric import notification_posted_counter, notification_suppressed_counter
from tripwire.notifications import (
    NotificationFactory,
    compose_checks_failed_notification,
    dispatch_notification,
    get_notification_factory,
)
from tripwire.settings import NotificationsSetting

logger = logging.getLogger("tripwire")

OnChecksFailedCallback = Callable[
    [Repository, PullRequest, str, str, Sequence[RefCheck]], None
]

CommitLookup = Callable[[Repository, str], Awaitable[Optional[Commit]]]

ApiFactory = Callable[[Account], API]


class PullRequestCoordinator(Protocol):
    async def get_all_pull_requests(self, repository: Repository) -> List[PullRequest]:
        ...


class Outcome(Enum):
    posted = "posted"
    no_active_repository = "no_active_repository"
    pull_request_not_found = "pull_request_not_found"
    no_authorized_account = "no_authorized_account"
    commit_skipped = "commit_skipped"
    commit_unresolvable = "commit_unresolvable"
    author_mismatch = "author_mismatch"
    checks_unavailable = "checks_unavailable"
    no_failed_checks = "no_failed_checks"
    repository_changed = "repository_changed"
    notifications_disabled = "notifications_disabled"


def create_router(store: "NotificationsStore") -> EventRouter:
    router = EventRouter()

    @router.register(CHECKS_FAILED)
    async def on_checks_failed(event: Event):
        try:
            checks_failed = ChecksFailedAliveEvent.model_validate(event.data)
        except pydantic.ValidationError as e:
            logger.warning("Malformed %s event: %s", CHECKS_FAILED, e)
            return
        await store.handle_checks_failed_event(checks_failed)

    return router


class NotificationsStore:
    """Turns Alive "checks failed" events into notifications for the
    currently selected repository.

    Only events for pull requests we know about, on commits authored by the
    signed in user, and with at least one failed check produce a
    notification. Everything else is dropped silently.
    """

    repository: Optional[Repository]
    on_checks_failed_callback: Optional[OnChecksFailedCallback]
    commit_cache: CommitCache
    router: EventRouter

    def __init__(
        self,
        accounts_store: AccountsStore,
        alive_store: AliveStore,
        pull_request_coordinator: PullRequestCoordinator,
        setting: NotificationsSetting,
        api_factory: ApiFactory,
        commit_lookup: CommitLookup = get_commit,
        notification_factory: Optional[NotificationFactory] = None,
    ):
        self.accounts_store = accounts_store
        self.alive_store = alive_store
        self.pull_request_coordinator = pull_request_coordinator
        self.setting = setting
        self.api_factory = api_factory
        self.commit_lookup = commit_lookup
        self.notification_factory = (
            notification_factory or get_notification_factory()
        )

        self.repository = None
        self.on_checks_failed_callback = None
        self.commit_cache = CommitCache()
        self.router = create_router(self)

        self.alive_store.set_enabled(self.get_notifications_enabled())
        self.alive_store.on_alive_event_received(self.router.dispatch)

    def set_notifications_enabled(self, enabled: bool) -> None:
        if not self.setting.set_enabled(enabled):
            return
        self.alive_store.set_enabled(enabled)

    def get_notifications_enabled(self) -> bool:
        return self.setting.is_enabled()

    def select_repository(self, repository: Optional[Repository]) -> None:
        """Only notifications for the selected repository are shown. A
        repository that isn't linked to GitHub clears the selection."""
        if repository is not None and repository.github_repository is None:
            repository = None
        self.repository = repository

    def on_checks_failed_notification(self, callback: OnChecksFailedCallback) -> None:
        self.on_checks_failed_callback = callback

    def _suppress(self, outcome: Outcome, event: ChecksFailedAliveEvent) -> Outcome:
        logger.debug(
            "Not notifying for PR #%d (%s): %s",
            event.pull_request_number,
            event.commit_sha,
            outcome.value,
        )
        notification_suppressed_counter.labels(reason=outcome.value).inc()
        return outcome

    async def handle_checks_failed_event(
        self, event: ChecksFailedAliveEvent
    ) -> Outcome:
        repository = self.repository
        if repository is None:
            return self._suppress(Outcome.no_active_repository, event)

        pull_requests = await self.pull_request_coordinator.get_all_pull_requests(
            repository
        )
        pull_request = next(
            (pr for pr in pull_requests if pr.number == event.pull_request_number),
            None,
        )

        # A PR missing from the local cache most likely wasn't pushed from
        # here, so the failure isn't interesting to this user.
        if pull_request is None:
            return self._suppress(Outcome.pull_request_not_found, event)

        account = await get_account_for_repository(
            self.accounts_store, repository.github_repository
        )
        if account is None:
            return self._suppress(Outcome.no_authorized_account, event)

        sha = event.commit_sha

        if self.commit_cache.should_skip(sha):
            return self._suppress(Outcome.commit_skipped, event)

        commit = self.commit_cache.get(sha)
        if commit is None:
            commit = await self.commit_lookup(repository, sha)
        if commit is None:
            self.commit_cache.skip(sha)
            return self._suppress(Outcome.commit_unresolvable, event)

        self.commit_cache.put(sha, commit)

        verified_emails = {e.lower() for e in account.verified_emails}
        if commit.author.email.lower() not in verified_emails:
            self.commit_cache.skip(sha)
            return self._suppress(Outcome.author_mismatch, event)

        checks = await self.get_checks_for_ref(repository, pull_request.head.ref)
        if checks is None:
            return self._suppress(Outcome.checks_unavailable, event)

        outcome = self.post_checks_failed_notification(
            repository, pull_request, checks, sha, commit.summary
        )
        if outcome != Outcome.posted:
            return self._suppress(outcome, event)
        return outcome

    async def get_checks_for_ref(
        self, repository: Repository, ref: str
    ) -> Optional[List[RefCheck]]:
        gh_repo = repository.github_repository
        if gh_repo is None:
            return None

        account = await get_account_for_repository(self.accounts_store, gh_repo)
        if account is None:
            return None

        api = self.api_factory(account)
        return await ci_checks.get_checks_for_ref(
            api, gh_repo.owner.login, gh_repo.name, ref
        )

    def post_checks_failed_notification(
        self,
        repository: Repository,
        pull_request: PullRequest,
        checks: Sequence[RefCheck],
        sha: str,
        commit_message: str,
    ) -> Outcome:
        if not self.get_notifications_enabled():
            return Outcome.notifications_disabled

        # The user may have switched repositories while we were fetching
        if self.repository is None or self.repository != repository:
            return Outcome.repository_changed

        content = compose_checks_failed_notification(pull_request, checks, sha)
        if content is None:
            return Outcome.no_failed_checks

        def on_click():
            callback = self.on_checks_failed_callback
            if callback is not None:
                callback(repository, pull_request, commit_message, sha, checks)

        dispatch_notification(self.notification_factory, content, on_click)
        notification_posted_counter.inc()
        logger.info("Posted checks failed notification for %s", pull_request)
        return Outcome.posted
