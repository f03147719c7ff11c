"""Shared helpers: environment configuration and logging setup"""

import logging
import os

NEWLINE_SYMBOL = '\n'
STDIN_SENTINEL = '-'
STDIN_DISPLAY_NAME = '(standard input)'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def get_int_env(name: str, default: int) -> int:
    """
    Read an integer from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or not an integer

    Returns:
        The parsed integer or the default
    """
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f'Invalid {name} value {value!r}, using default {default}')
        return default


def default_thread_count() -> int:
    """Worker count from SCANR_THREADS, falling back to the CPU count."""
    return get_int_env('SCANR_THREADS', os.cpu_count() or 1)


def setup_logging(debug: bool = False) -> None:
    """Configure root logging on stderr. Level comes from SCANR_LOG_LEVEL unless debug is set."""
    if debug:
        level = logging.DEBUG
    else:
        level_name = os.getenv('SCANR_LOG_LEVEL', 'WARNING').upper()
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def strip_line_terminator(line: str) -> str:
    if line.endswith(NEWLINE_SYMBOL):
        return line[: -len(NEWLINE_SYMBOL)]
    return line


def display_name(identifier: str) -> str:
    """Name shown in output for a stream identifier."""
    return STDIN_DISPLAY_NAME if identifier == STDIN_SENTINEL else identifier
