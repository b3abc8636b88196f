"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Attach one stream handler to the ``macro_planner`` logger.

    Safe to call repeatedly; later calls only adjust the level.
    """
    logger = logging.getLogger("macro_planner")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
