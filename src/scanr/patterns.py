"""Pattern compilation and per-line matching

Two interchangeable strategies implement the same matcher interface:

- RegexMatcher wraps a compiled ``re.Pattern``. Whole-word and whole-line
  constraints are expressed as lookarounds / anchors around the user pattern.
- LiteralMatcher performs plain substring search. Whole-word candidates are
  validated by inspecting the characters adjacent to the candidate; a rejected
  candidate moves the search forward by one character.

Compiled ``re.Pattern`` objects and the matchers built on them hold no mutable
state, so one CompiledPatternSet is shared by every worker thread.
"""

import logging
import re
from dataclasses import dataclass, field

from scanr.errors import PatternError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchOptions:
    """Flags applied to every pattern of a run"""

    ignore_case: bool = False
    whole_word: bool = False
    whole_line: bool = False
    use_regex: bool = False


@dataclass(frozen=True, order=True)
class MatchSpan:
    """A matched region of a line: start offset and length in characters"""

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def text(self, line: str) -> str:
        return line[self.start : self.end]


def is_word_char(ch: str) -> bool:
    return ch == '_' or ch.isalnum()


def at_word_boundaries(line: str, start: int, end: int) -> bool:
    """True when [start, end) is not glued to a word character on either side."""
    if start > 0 and is_word_char(line[start - 1]):
        return False
    if end < len(line) and is_word_char(line[end]):
        return False
    return True


def fold_case(text: str) -> str:
    """
    Lower-case text without changing its length.

    ``str.lower`` expands a few characters (e.g. 'İ' becomes two code points),
    which would shift every offset after them. Such characters are kept as-is.
    """
    folded = text.lower()
    if len(folded) == len(text):
        return folded
    return ''.join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text)


class RegexMatcher:
    """Matcher for one regular expression"""

    def __init__(self, pattern: str, options: MatchOptions):
        self.pattern = pattern
        source = pattern
        if options.whole_word:
            source = rf'(?<!\w)(?:{source})(?!\w)'
        if options.whole_line:
            source = rf'\A(?:{source})\Z'
        flags = re.IGNORECASE if options.ignore_case else 0
        try:
            self.regex = re.compile(source, flags)
        except re.error as e:
            raise PatternError(pattern, str(e)) from e

    def find_first(self, line: str) -> MatchSpan | None:
        found = self.regex.search(line)
        if found is None:
            return None
        return MatchSpan(found.start(), found.end() - found.start())

    def find_all(self, line: str) -> list[MatchSpan]:
        return [MatchSpan(m.start(), m.end() - m.start()) for m in self.regex.finditer(line)]


class LiteralMatcher:
    """Matcher for one fixed string"""

    def __init__(self, pattern: str, options: MatchOptions):
        self.pattern = pattern
        self.options = options
        self.needle = fold_case(pattern) if options.ignore_case else pattern

    def _haystack(self, line: str) -> str:
        return fold_case(line) if self.options.ignore_case else line

    def _accepted(self, line: str, start: int) -> bool:
        if not self.options.whole_word:
            return True
        return at_word_boundaries(line, start, start + len(self.needle))

    def _search(self, line: str, exhaustive: bool) -> list[MatchSpan]:
        haystack = self._haystack(line)
        size = len(self.needle)

        if self.options.whole_line:
            if haystack == self.needle:
                return [MatchSpan(0, size)]
            return []

        spans = []
        position = 0
        while position <= len(haystack):
            start = haystack.find(self.needle, position)
            if start == -1:
                break
            if not self._accepted(line, start):
                position = start + 1
                continue
            spans.append(MatchSpan(start, size))
            if not exhaustive:
                break
            # an empty needle would otherwise match at the same spot forever
            position = start + max(size, 1)
        return spans

    def find_first(self, line: str) -> MatchSpan | None:
        spans = self._search(line, exhaustive=False)
        return spans[0] if spans else None

    def find_all(self, line: str) -> list[MatchSpan]:
        return self._search(line, exhaustive=True)


Matcher = RegexMatcher | LiteralMatcher


@dataclass(frozen=True)
class CompiledPatternSet:
    """Read-only set of compiled matchers, one per input pattern"""

    patterns: tuple[str, ...]
    options: MatchOptions
    matchers: tuple[Matcher, ...] = field(repr=False)

    def __len__(self) -> int:
        return len(self.matchers)


def compile_patterns(patterns: list[str], options: MatchOptions) -> CompiledPatternSet:
    """
    Compile raw pattern strings into a CompiledPatternSet.

    Args:
        patterns: Raw pattern strings
        options: Flags applied to every pattern

    Returns:
        CompiledPatternSet safe for concurrent matching

    Raises:
        PatternError: If a pattern is not a valid regular expression in regex mode
    """
    matcher_cls = RegexMatcher if options.use_regex else LiteralMatcher
    matchers = tuple(matcher_cls(pattern, options) for pattern in patterns)
    logger.debug(
        f'[PATTERNS] Compiled {len(matchers)} {"regex" if options.use_regex else "literal"} patterns '
        f'(ignore_case={options.ignore_case}, whole_word={options.whole_word}, whole_line={options.whole_line})'
    )
    return CompiledPatternSet(patterns=tuple(patterns), options=options, matchers=matchers)


def merge_spans(spans: list[MatchSpan]) -> list[MatchSpan]:
    """
    Sort spans by start and drop overlaps and empty spans.

    Ties on start keep the longest span. A span starting before the end of the
    previously kept span is discarded, so the result is non-overlapping.
    """
    merged = []
    last_end = 0
    for span in sorted(spans, key=lambda s: (s.start, -s.length)):
        if span.length == 0 or span.start < last_end:
            continue
        merged.append(span)
        last_end = span.end
    return merged


def match_line(
    line: str, pattern_set: CompiledPatternSet, *, invert: bool = False, exhaustive: bool = False
) -> tuple[bool, list[MatchSpan]]:
    """
    Apply a pattern set to a single line.

    Args:
        line: Line text without its terminator
        pattern_set: Compiled patterns
        invert: Flip the result; inverted lines never carry spans
        exhaustive: Collect every match of every pattern (only-matching output
            and highlighting) instead of stopping at the first hit

    Returns:
        Tuple of (selected, spans). Spans are sorted and non-overlapping.
    """
    matched = False
    spans: list[MatchSpan] = []

    if exhaustive:
        for matcher in pattern_set.matchers:
            found = matcher.find_all(line)
            if found:
                matched = True
                spans.extend(found)
        spans = merge_spans(spans)
    else:
        for matcher in pattern_set.matchers:
            first = matcher.find_first(line)
            if first is not None:
                matched = True
                spans = merge_spans([first])
                break

    if invert:
        return not matched, []
    return matched, spans
