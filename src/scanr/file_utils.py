"""Input collaborators: directory expansion and stream opening"""

import io
import logging
import os
import sys
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import TextIO

from scanr.errors import FileSystemError, OpenError
from scanr.utils import STDIN_SENTINEL

logger = logging.getLogger(__name__)

BINARY_SAMPLE_SIZE = 8192


def is_text_file(filepath: str, sample_size: int = BINARY_SAMPLE_SIZE) -> bool:
    """
    Check if a file is a text file by reading a sample and looking for null bytes.
    Binary files typically contain null bytes, while text files don't.
    """
    try:
        with open(filepath, 'rb') as f:
            sample = f.read(sample_size)
            return b'\x00' not in sample
    except OSError:
        # unreadable files are reported by the scanner when it opens them
        return True


def walk_directory(dirpath: str, on_error: Callable[[FileSystemError], None]) -> Iterator[str]:
    """
    Yield regular text files below dirpath in sorted order.

    Traversal errors are reported through on_error and the walk continues.
    """

    def report(error: OSError) -> None:
        path = error.filename or dirpath
        on_error(FileSystemError(path, error.strerror or str(error)))

    for root, dirs, files in os.walk(dirpath, onerror=report):
        dirs.sort()
        for name in sorted(files):
            filepath = os.path.join(root, name)
            if not os.path.isfile(filepath):
                logger.debug(f'[EXPAND] Skipping non-file: {filepath}')
                continue
            if not is_text_file(filepath):
                logger.debug(f'[EXPAND] Skipping binary file: {filepath}')
                continue
            yield filepath


def expand_paths(
    paths: Iterable[str], recursive: bool, on_error: Callable[[FileSystemError], None]
) -> Iterator[str]:
    """
    Flatten user-supplied paths into the file paths to scan.

    Args:
        paths: Files, directories or the '-' stdin sentinel
        recursive: Descend into directories; without it a directory is an error
        on_error: Receives a FileSystemError for every entry that is skipped

    Yields:
        Paths in input order. Missing paths are passed through so the scanner
        reports them when it fails to open them.
    """
    for path in paths:
        if path == STDIN_SENTINEL or not os.path.isdir(path):
            yield path
            continue

        if not recursive:
            on_error(FileSystemError(path, 'Is a directory (use -r to search recursively)'))
            continue

        logger.info(f'[EXPAND] Walking directory: {path}')
        count = 0
        for filepath in walk_directory(path, on_error):
            count += 1
            yield filepath
        logger.info(f'[EXPAND] {path}: {count} files')


@contextmanager
def open_stream(identifier: str) -> Iterator[TextIO]:
    """
    Open a stream for line-by-line reading.

    '-' is standard input. Files are decoded as UTF-8 with replacement of
    undecodable bytes; universal newlines normalize line endings to '\\n'.

    Raises:
        OpenError: If the file cannot be opened
    """
    if identifier == STDIN_SENTINEL:
        buffer = getattr(sys.stdin, 'buffer', None)
        if buffer is None:
            yield sys.stdin
        else:
            wrapper = io.TextIOWrapper(buffer, encoding='utf-8', errors='replace', newline=None)
            try:
                yield wrapper
            finally:
                # leave sys.stdin usable
                wrapper.detach()
        return

    try:
        stream = open(identifier, 'r', encoding='utf-8', errors='replace', newline=None)
    except OSError as e:
        raise OpenError(identifier, e.strerror or str(e)) from e

    with stream:
        yield stream
