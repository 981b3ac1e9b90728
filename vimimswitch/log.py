"""Custom logging levels for vimimswitch.

Levels (ascending):
    TRACE =  5  — every mode notification, every ignored label
    DEBUG = 10  — rendered commands, queue activity, editor binding
    INFO  = 20  — command output, startup/shutdown (default)

Usage:
    import vimimswitch.log  # must be imported once before any logger is used
    logger = logging.getLogger(__name__)
    logger.trace("very noisy message")
"""

import logging

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, message: object, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)  # type: ignore[attr-defined]


if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _trace  # type: ignore[attr-defined]
