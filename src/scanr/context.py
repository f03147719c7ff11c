"""Leading/trailing context tracking for one stream

ContextWindow turns a sequence of LineRecords into Emissions: selected lines,
context lines around them and separators between non-adjacent blocks. One
window exists per stream and is owned by the worker scanning that stream.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from scanr.errors import InvalidArgument
from scanr.patterns import MatchSpan


@dataclass
class LineRecord:
    """One line of a stream, with its match result"""

    source: str
    line_number: int
    text: str
    spans: list[MatchSpan] = field(default_factory=list)
    matched: bool = False  # selected for output (invert already applied)


class EmitKind(Enum):
    MATCH = 'match'
    CONTEXT = 'context'
    SEPARATOR = 'separator'


@dataclass(frozen=True)
class Emission:
    kind: EmitKind
    record: LineRecord | None = None


SEPARATOR = Emission(EmitKind.SEPARATOR)


class LeadingBuffer:
    """Bounded FIFO of the most recent lines, oldest evicted first"""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._lines: deque[LineRecord] = deque()

    def __len__(self) -> int:
        return len(self._lines)

    def push(self, record: LineRecord) -> None:
        if self.capacity == 0:
            return
        if len(self._lines) == self.capacity:
            self._lines.popleft()
        self._lines.append(record)

    def newer_than(self, line_number: int) -> list[LineRecord]:
        """Buffered lines with a line number greater than line_number, oldest first."""
        return [record for record in self._lines if record.line_number > line_number]


class ContextWindow:
    """
    Per-stream context state machine.

    For each line fed in:

    1. A selected line flushes buffered leading lines not yet printed, then is
       emitted itself and re-arms the trailing counter. If the first line of
       this output is not adjacent to the last printed line, a separator comes
       first.
    2. An unselected line is emitted as trailing context while the counter is
       positive.
    3. Every line then enters the leading buffer.

    A line is never emitted twice, and exactly one separator divides two
    non-adjacent blocks. No separator precedes the first block.
    """

    def __init__(self, before: int = 0, after: int = 0):
        if before < 0 or after < 0:
            raise InvalidArgument('context sizes must be non-negative')
        self.before = before
        self.after = after
        self.leading = LeadingBuffer(before)
        self.trailing_remaining = 0
        self.last_emitted = 0  # 0 means nothing emitted yet

    @property
    def enabled(self) -> bool:
        return self.before > 0 or self.after > 0

    def _emit(self, record: LineRecord, kind: EmitKind, out: list[Emission]) -> None:
        if self.enabled and self.last_emitted and record.line_number > self.last_emitted + 1:
            out.append(SEPARATOR)
        out.append(Emission(kind, record))
        self.last_emitted = record.line_number

    def feed(self, record: LineRecord) -> list[Emission]:
        """
        Process one line and return what must be written, in order.

        Args:
            record: The next line of the stream; line numbers must increase

        Returns:
            List of Emissions (possibly empty)
        """
        out: list[Emission] = []

        if record.matched:
            for buffered in self.leading.newer_than(self.last_emitted):
                self._emit(buffered, EmitKind.CONTEXT, out)
            self._emit(record, EmitKind.MATCH, out)
            self.trailing_remaining = self.after
        elif self.trailing_remaining > 0 and record.line_number > self.last_emitted:
            self._emit(record, EmitKind.CONTEXT, out)
            self.trailing_remaining -= 1

        self.leading.push(record)
        return out
