"""Thread-safe output sink and aggregate counters

All records written by worker threads go through one OutputSink. A single
lock covers stdout and stderr so a record (or a chunk of records produced by
one line) is never interleaved with another worker's output.
"""

import logging
import threading
from dataclasses import dataclass, field

import click

from scanr.context import Emission, EmitKind, LineRecord
from scanr.errors import ScanrError
from scanr.models import OutputMode, ScanConfig, ScanSummary
from scanr.patterns import MatchSpan
from scanr.utils import display_name

logger = logging.getLogger(__name__)

SEPARATOR_TEXT = '--'
MATCH_DELIMITER = ':'
CONTEXT_DELIMITER = '-'


@dataclass
class ScanStats:
    """Invocation-scoped counters. Increments are atomic; read after workers joined."""

    matched_lines: int = 0
    files_processed: int = 0
    files_failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_file(self, matched_lines: int) -> None:
        with self._lock:
            self.files_processed += 1
            self.matched_lines += matched_lines

    def add_matches(self, matched_lines: int) -> None:
        with self._lock:
            self.matched_lines += matched_lines

    def add_failure(self) -> None:
        with self._lock:
            self.files_failed += 1


def highlight_spans(text: str, spans: list[MatchSpan], colorize: bool) -> str:
    """
    Wrap each span of text in highlight markers.

    Spans must be sorted and non-overlapping; they are spliced left to right.
    Returns text unchanged when color is off or there is nothing to highlight.
    """
    if not colorize or not spans:
        return text

    parts = []
    position = 0
    for span in spans:
        parts.append(text[position : span.start])
        parts.append(click.style(span.text(text), fg='red', bold=True))
        position = span.end
    parts.append(text[position:])
    return ''.join(parts)


class OutputSink:
    """
    Mode-aware formatter and serialized writer.

    Args:
        config: Validated scan configuration
        show_filename: Prefix records with the source name
        colorize: Emit ANSI styles
        stats: Counters to update; a fresh ScanStats when omitted
    """

    def __init__(
        self,
        config: ScanConfig,
        show_filename: bool = False,
        colorize: bool = False,
        stats: ScanStats | None = None,
    ):
        self.config = config
        self.mode = config.output_mode
        self.show_filename = show_filename
        self.colorize = colorize
        self.stats = stats if stats is not None else ScanStats()
        self._lock = threading.Lock()

    @property
    def highlights(self) -> bool:
        """Whether full span lists are needed to render a selected line."""
        return self.mode == OutputMode.ONLY_MATCHING or (self.mode == OutputMode.NORMAL and self.colorize)

    def _style(self, text: str, **styles) -> str:
        return click.style(text, **styles) if self.colorize else text

    def format_prefix(self, source: str, line_number: int | None, delimiter: str) -> str:
        prefix = ''
        if self.show_filename:
            prefix += self._style(display_name(source), fg='magenta') + self._style(delimiter, fg='cyan')
        if self.config.show_line_numbers and line_number is not None:
            prefix += self._style(str(line_number), fg='green') + self._style(delimiter, fg='cyan')
        return prefix

    def format_separator(self) -> str:
        return self._style(SEPARATOR_TEXT, fg='cyan')

    def format_record(self, record: LineRecord, kind: EmitKind) -> list[str]:
        """Render one line record; only-matching mode yields one output line per span."""
        if kind == EmitKind.CONTEXT:
            return [self.format_prefix(record.source, record.line_number, CONTEXT_DELIMITER) + record.text]

        prefix = self.format_prefix(record.source, record.line_number, MATCH_DELIMITER)
        if self.mode == OutputMode.ONLY_MATCHING:
            return [prefix + self._style(span.text(record.text), fg='red', bold=True) for span in record.spans]
        return [prefix + highlight_spans(record.text, record.spans, self.colorize)]

    def format_emissions(self, emissions: list[Emission]) -> list[str]:
        lines = []
        for emission in emissions:
            if emission.kind == EmitKind.SEPARATOR:
                lines.append(self.format_separator())
            else:
                lines.extend(self.format_record(emission.record, emission.kind))
        return lines

    def _write(self, lines: list[str], err: bool = False) -> None:
        if not lines:
            return
        with self._lock:
            click.echo('\n'.join(lines), err=err, color=self.colorize)

    def write_emissions(self, emissions: list[Emission]) -> None:
        """Write the records produced by one input line as a single atomic chunk."""
        if self.mode not in (OutputMode.NORMAL, OutputMode.ONLY_MATCHING):
            return
        self._write(self.format_emissions(emissions))

    def finish_file(self, source: str, matched_lines: int) -> None:
        """Record a fully scanned file and write its count or name in those modes."""
        self.stats.add_file(matched_lines)

        if self.mode == OutputMode.COUNT:
            prefix = self.format_prefix(source, None, MATCH_DELIMITER)
            self._write([f'{prefix}{matched_lines}'])
        elif self.mode == OutputMode.LIST and matched_lines > 0:
            self._write([self._style(display_name(source), fg='magenta')])

    def report_error(self, error: ScanrError) -> None:
        """Write a recoverable error on the diagnostic channel."""
        logger.debug(f'[OUTPUT] Diagnostic: {error}')
        self._write([f'scanr: {error}'], err=True)

    def report_open_error(self, error: ScanrError) -> None:
        self.stats.add_failure()
        self.report_error(error)

    def write_summary(self, summary: ScanSummary) -> None:
        self._write([summary.to_cli(colorize=self.colorize)])

    def should_summarize(self, input_count: int) -> bool:
        """The aggregate line is shown for multi-input runs in line-printing modes."""
        return input_count > 1 and self.mode in (OutputMode.NORMAL, OutputMode.ONLY_MATCHING)
