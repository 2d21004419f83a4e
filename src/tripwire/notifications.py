from dataclasses import dataclass
import logging
from typing import Callable, List, Optional, Sequence

import notifiers

from tripwire import config
from tripwire.checks import RefCheck, count_failed_checks
from tripwire.github.model import PullRequest
from tripwire.metric import error_counter

logger = logging.getLogger("tripwire")

CHECKS_FAILED_TITLE = "Pull Request checks failed"

SHORT_SHA_LENGTH = 9


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str


def compose_checks_failed_notification(
    pull_request: PullRequest, checks: Sequence[RefCheck], sha: str
) -> Optional[NotificationContent]:
    number_of_failed_checks = count_failed_checks(checks)

    # Checks may have been restarted between the event and our fetch
    if number_of_failed_checks == 0:
        return None

    plural_checks = "check was" if number_of_failed_checks == 1 else "checks were"
    short_sha = sha[:SHORT_SHA_LENGTH]
    body = (
        f"{pull_request.title} #{pull_request.number} ({short_sha})\n"
        f"{number_of_failed_checks} {plural_checks} not successful."
    )
    return NotificationContent(title=CHECKS_FAILED_TITLE, body=body)


class Notification:
    """A user facing notification. Subclasses decide how it is shown; the
    host calls :meth:`click` when the user activates it."""

    title: str
    body: str

    def __init__(self, title: str, body: str):
        self.title = title
        self.body = body
        self._click_handlers: List[Callable[[], None]] = []

    def on_click(self, handler: Callable[[], None]) -> None:
        self._click_handlers.append(handler)

    def click(self) -> None:
        for handler in self._click_handlers:
            handler()

    def show(self) -> None:
        raise NotImplementedError


class LogNotification(Notification):
    def show(self) -> None:
        logger.warning("%s\n%s", self.title, self.body)


class TelegramNotification(Notification):
    def show(self) -> None:
        telegram = notifiers.get_notifier("telegram")
        response = telegram.notify(
            message=f"{self.title}\n{self.body}",
            token=config.TELEGRAM_TOKEN,
            chat_id=config.TELEGRAM_CHAT_ID,
        )
        if response.errors:
            logger.warning("Telegram notification failed: %s", response.errors)


NotificationFactory = Callable[[str, str], Notification]


def get_notification_factory() -> NotificationFactory:
    if config.NOTIFIER == "telegram":
        return TelegramNotification
    return LogNotification


def dispatch_notification(
    factory: NotificationFactory,
    content: NotificationContent,
    on_click: Callable[[], None],
) -> Optional[Notification]:
    notification = factory(content.title, content.body)
    notification.on_click(on_click)
    try:
        notification.show()
    except Exception:
        error_counter.labels(context="notification_show").inc()
        logger.error("Unable to show notification", exc_info=True)
        return None
    return notification
