"""Pydantic models for scan configuration and results"""

import sys
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from scanr.errors import InvalidArgument
from scanr.utils import default_thread_count


class OutputMode(str, Enum):
    """Primary output mode. Exactly one governs line selection per run."""

    NORMAL = 'normal'
    COUNT = 'count'
    LIST = 'list'
    ONLY_MATCHING = 'only_matching'
    QUIET = 'quiet'


class ScanConfig(BaseModel):
    """Validated configuration for one scan invocation.

    Parsing of command-line flags happens in the CLI layer; this model only
    checks ranges and resolves derived settings (output mode, colors, context).
    """

    model_config = ConfigDict(frozen=True)

    ignore_case: bool = Field(default=False, description='Case-insensitive matching')
    invert_match: bool = Field(default=False, description='Select non-matching lines')
    whole_word: bool = Field(default=False, description='Matches must be bounded by non-word characters')
    whole_line: bool = Field(default=False, description='Matches must span the whole line')
    use_regex: bool = Field(default=False, description='Treat patterns as regular expressions')
    recursive: bool = Field(default=False, description='Descend into directories')
    show_line_numbers: bool = Field(default=False, description='Prefix records with line numbers')
    with_filename: bool | None = Field(default=None, description='Force file name prefixes on (True) or off (False)')
    count_only: bool = Field(default=False, description='Print only per-file counts')
    list_filenames_only: bool = Field(default=False, description='Print only names of matching files')
    only_matching: bool = Field(default=False, description='Print only the matched parts of lines')
    quiet: bool = Field(default=False, description='Suppress all normal output')
    before_context: int = Field(default=0, ge=0, description='Leading context lines')
    after_context: int = Field(default=0, ge=0, description='Trailing context lines')
    thread_count: int = Field(
        default_factory=default_thread_count, ge=1, validate_default=True, description='Worker threads'
    )
    color_mode: Literal['always', 'never', 'auto'] = Field(default='auto', description='When to emit ANSI colors')

    @classmethod
    def from_options(cls, context: int | None = None, **options) -> 'ScanConfig':
        """
        Build a configuration, turning validation failures into InvalidArgument.

        Args:
            context: Sets both before and after context unless those are given explicitly
            **options: Field values; None means "use the default"

        Returns:
            Validated ScanConfig
        """
        values = {key: value for key, value in options.items() if value is not None}
        if context is not None:
            values.setdefault('before_context', context)
            values.setdefault('after_context', context)

        try:
            return cls(**values)
        except ValidationError as e:
            problems = '; '.join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
            )
            raise InvalidArgument(problems) from e

    @property
    def output_mode(self) -> OutputMode:
        if self.quiet:
            return OutputMode.QUIET
        if self.list_filenames_only:
            return OutputMode.LIST
        if self.count_only:
            return OutputMode.COUNT
        if self.only_matching:
            return OutputMode.ONLY_MATCHING
        return OutputMode.NORMAL

    @property
    def context_enabled(self) -> bool:
        return self.before_context > 0 or self.after_context > 0

    def colorize(self, isatty: bool | None = None) -> bool:
        """Resolve color_mode; 'auto' colors only when stdout is a terminal."""
        if self.color_mode == 'always':
            return True
        if self.color_mode == 'never':
            return False
        if isatty is None:
            isatty = sys.stdout.isatty()
        return isatty

    def show_filename(self, input_count: int) -> bool:
        """File name prefixes appear for multi-input or recursive runs unless forced either way."""
        if self.with_filename is not None:
            return self.with_filename
        return input_count > 1 or self.recursive


class ScanSummary(BaseModel):
    """Aggregate result of one dispatch, built after all workers joined."""

    total_matches: int = Field(default=0, description='Selected lines across all inputs')
    files_processed: int = Field(default=0, description='Inputs scanned to completion')
    files_failed: int = Field(default=0, description='Inputs that could not be opened or read')
    inputs: int = Field(default=0, description='Inputs handed to the dispatcher')
    workers: int = Field(default=0, description='Worker threads used')
    elapsed: float = Field(default=0.0, description='Wall time in seconds')

    @computed_field
    @property
    def found(self) -> bool:
        return self.total_matches > 0

    def to_cli(self, colorize: bool = False) -> str:
        """Format the 'N matches in M files' summary line"""
        match_word = 'match' if self.total_matches == 1 else 'matches'
        file_word = 'file' if self.files_processed == 1 else 'files'
        if colorize:
            BOLD_GREEN = '\033[1;32m'
            CYAN = '\033[36m'
            RESET = '\033[0m'
            return (
                f'{BOLD_GREEN}{self.total_matches}{RESET} {match_word} in '
                f'{CYAN}{self.files_processed}{RESET} {file_word}'
            )
        return f'{self.total_matches} {match_word} in {self.files_processed} {file_word}'
