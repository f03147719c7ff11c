"""Line-by-line scanning of a single stream"""

import logging
import threading
import time

from scanr.context import ContextWindow, LineRecord
from scanr.errors import OpenError
from scanr.file_utils import open_stream
from scanr.models import OutputMode, ScanConfig
from scanr.output import OutputSink
from scanr.patterns import CompiledPatternSet, match_line
from scanr.utils import strip_line_terminator

logger = logging.getLogger(__name__)


class FileScanner:
    """
    Drives one stream through the matcher and the context window.

    A scanner holds no per-file state between runs, so a worker can reuse one
    instance for every path it claims. The context window is created per run.
    """

    def __init__(self, pattern_set: CompiledPatternSet, config: ScanConfig, sink: OutputSink):
        self.pattern_set = pattern_set
        self.config = config
        self.sink = sink
        self.mode = config.output_mode

    @property
    def stops_at_first_match(self) -> bool:
        return self.mode in (OutputMode.LIST, OutputMode.QUIET)

    @property
    def writes_lines(self) -> bool:
        return self.mode in (OutputMode.NORMAL, OutputMode.ONLY_MATCHING)

    def run(self, identifier: str) -> int:
        """
        Scan one stream and report its results to the sink.

        Args:
            identifier: File path or '-' for standard input

        Returns:
            Number of selected lines. Zero when the stream could not be opened.
            When a read fails partway, records already written stay in the match
            total and the file is counted as failed.
        """
        start_time = time.time()
        thread_id = threading.current_thread().name

        try:
            match_count = self._scan(identifier)
        except OpenError as e:
            logger.info(f'[SCAN {thread_id}] Failed to read {identifier}: {e.reason}')
            self.sink.report_open_error(e)
            return 0

        self.sink.finish_file(identifier, match_count)
        logger.debug(
            f'[SCAN {thread_id}] {identifier}: {match_count} matching lines in {time.time() - start_time:.3f}s'
        )
        return match_count

    def _scan(self, identifier: str) -> int:
        window = ContextWindow(self.config.before_context, self.config.after_context) if self.writes_lines else None
        exhaustive = self.writes_lines and self.sink.highlights
        match_count = 0

        with open_stream(identifier) as stream:
            try:
                for line_number, raw in enumerate(stream, start=1):
                    text = strip_line_terminator(raw)
                    selected, spans = match_line(
                        text, self.pattern_set, invert=self.config.invert_match, exhaustive=exhaustive
                    )
                    if selected:
                        match_count += 1

                    if window is not None:
                        record = LineRecord(identifier, line_number, text, spans, selected)
                        emissions = window.feed(record)
                        if emissions:
                            self.sink.write_emissions(emissions)
                    elif selected and self.stops_at_first_match:
                        break
            except OSError as e:
                # lines already written stay counted; the file itself counts as failed
                self.sink.stats.add_matches(match_count)
                raise OpenError(identifier, e.strerror or str(e)) from e

        return match_count
