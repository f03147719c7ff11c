"""Worker pool that scans files in parallel

Workers share one FIFO of pending paths. Each worker claims a path, scans it
to completion and claims the next one until the queue is drained, so fast
workers naturally pick up more files. Output from different files may
interleave in any order; lines of one file always appear in file order.
"""

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from scanr.models import ScanConfig, ScanSummary
from scanr.output import OutputSink
from scanr.patterns import CompiledPatternSet
from scanr.scanner import FileScanner

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Runs FileScanner over a flat list of paths with a fixed pool of threads.

    Args:
        pattern_set: Compiled patterns shared read-only by all workers
        config: Scan configuration (thread_count bounds the pool size)
        sink: Output sink shared by all workers; owns the aggregate counters
    """

    def __init__(self, pattern_set: CompiledPatternSet, config: ScanConfig, sink: OutputSink):
        self.pattern_set = pattern_set
        self.config = config
        self.sink = sink

    def _worker(self, pending: 'queue.Queue[str]') -> int:
        thread_id = threading.current_thread().name
        scanner = FileScanner(self.pattern_set, self.config, self.sink)
        files = 0
        while True:
            try:
                path = pending.get_nowait()
            except queue.Empty:
                break
            scanner.run(path)
            files += 1
        logger.debug(f'[DISPATCH {thread_id}] Worker done after {files} files')
        return files

    def run(self, paths: list[str]) -> ScanSummary:
        """
        Scan every path and return the aggregate summary.

        Args:
            paths: Already-expanded file paths (or '-' for standard input)

        Returns:
            ScanSummary built from the counters once all workers have joined
        """
        start_time = time.time()
        pending: queue.Queue[str] = queue.Queue()
        for path in paths:
            pending.put(path)

        workers = min(self.config.thread_count, len(paths))
        logger.info(f'[DISPATCH] {len(paths)} paths, {workers} workers')

        if workers:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='Worker') as executor:
                futures = [executor.submit(self._worker, pending) for _ in range(workers)]
                for future in as_completed(futures):
                    # re-raises unexpected worker failures
                    future.result()

        stats = self.sink.stats
        summary = ScanSummary(
            total_matches=stats.matched_lines,
            files_processed=stats.files_processed,
            files_failed=stats.files_failed,
            inputs=len(paths),
            workers=workers,
            elapsed=time.time() - start_time,
        )
        logger.info(
            f'[DISPATCH] Completed: {summary.total_matches} matches in {summary.files_processed} files '
            f'({summary.files_failed} failed) in {summary.elapsed:.3f}s'
        )
        return summary
