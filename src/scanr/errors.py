"""Exception hierarchy for scanr"""


class ScanrError(Exception):
    """Base class for all scanr errors."""


class PatternError(ScanrError):
    """A pattern is not valid under the active matching mode."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f'invalid pattern {pattern!r}: {reason}')


class InvalidArgument(ScanrError, ValueError):
    """A configuration value is out of range or malformed."""


class OpenError(ScanrError):
    """A file could not be opened or read. Recovered per file."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f'{path}: {reason}')


class FileSystemError(ScanrError):
    """A directory entry could not be traversed. Recovered per entry."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f'{path}: {reason}')
