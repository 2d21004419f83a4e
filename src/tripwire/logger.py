import logging
from typing import List, Union

import notifiers.logging

from tripwire import config

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"
TELEGRAM_FORMAT = "tripwire %(levelname)s: %(message)s"


def get_telegram_handler() -> logging.Handler:
    handler = notifiers.logging.NotificationHandler(
        "telegram",
        defaults={
            "token": config.TELEGRAM_TOKEN,
            "chat_id": config.TELEGRAM_CHAT_ID,
        },
    )
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(TELEGRAM_FORMAT))
    return handler


def configure_logging(
    logger: logging.Logger, level: Union[int, str, None] = None
) -> List[logging.Handler]:
    """Set up console logging for the CLI and forward warnings about
    tripwire to telegram when a bot token is configured.

    Returns the handlers added to ``logger``. Calling this again does not
    stack another telegram handler.
    """
    if level is None:
        level = config.OVERRIDE_LOGGING
    logging.basicConfig(format=LOG_FORMAT, level=level)
    logging.getLogger().setLevel(level)
    logger.setLevel(level)

    if config.TELEGRAM_TOKEN is None:
        return []

    for handler in logger.handlers:
        if isinstance(handler, notifiers.logging.NotificationHandler):
            return []

    handler = get_telegram_handler()
    logger.addHandler(handler)
    return [handler]
