import logging
import logging.handlers
import multiprocessing as mp
from contextlib import contextmanager
from typing import Iterator, Optional

_LOGGER_NAME = "mandelreel"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)

def level_from_name(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)

def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

def _install(logger: logging.Logger, level: int, *handlers: logging.Handler) -> None:
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
    for h in handlers:
        h.setLevel(level)
        logger.addHandler(h)

def configure_package_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    """Console and optional rotating-file handlers on the ``mandelreel`` logger."""
    fmt = _build_formatter()
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    for h in handlers:
        h.setFormatter(fmt)

    logger = get_logger()
    _install(logger, level, *handlers)
    return logger

def logging_initialiser(queue: mp.Queue, level: int) -> None:
    """Executor initializer: render workers only forward records to the coordinator."""
    _install(get_logger(), level, logging.handlers.QueueHandler(queue))

@contextmanager
def log_session(*, level: int = logging.INFO, log_file: Optional[str] = None) -> Iterator[mp.Queue]:
    """
    Configure coordinator logging and yield the queue worker processes log into.

    A ``QueueListener`` drains the queue into the coordinator's handlers until
    the session ends.
    """
    logger = configure_package_logging(level=level, console=True, log_file=log_file)
    queue: mp.Queue = mp.Queue(-1)
    handlers = list(logger.handlers)
    listener = logging.handlers.QueueListener(queue, *handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()
        queue.close()
        queue.join_thread()
        for h in handlers:
            h.close()
