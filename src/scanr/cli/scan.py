"""CLI scan command for scanr"""

import logging
import sys

import click

from scanr.__version__ import __version__
from scanr.dispatch import Dispatcher
from scanr.errors import FileSystemError, InvalidArgument, PatternError
from scanr.file_utils import expand_paths
from scanr.models import ScanConfig
from scanr.output import OutputSink
from scanr.patterns import MatchOptions, compile_patterns
from scanr.utils import STDIN_SENTINEL, setup_logging

logger = logging.getLogger(__name__)

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def read_pattern_file(pattern_file: str) -> list[str]:
    """
    Read one pattern per line from a file.

    Raises:
        InvalidArgument: If the file cannot be read
    """
    try:
        with open(pattern_file, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except UnicodeDecodeError as e:
        raise InvalidArgument(f'cannot read pattern file {pattern_file}: not valid UTF-8') from e
    except OSError as e:
        raise InvalidArgument(f'cannot read pattern file {pattern_file}: {e.strerror or e}') from e


def resolve_patterns_and_paths(
    args: tuple[str, ...], regexp: tuple[str, ...], pattern_file: str | None
) -> tuple[list[str], list[str]]:
    """
    Split positional arguments into patterns and paths.

    With -e or -f every positional argument is a path; otherwise the first one
    is the pattern. No path means standard input.

    Returns:
        Tuple of (patterns, paths)
    """
    patterns = list(regexp)
    if pattern_file:
        patterns.extend(read_pattern_file(pattern_file))

    positional = list(args)
    if not regexp and not pattern_file:
        if not positional:
            raise click.UsageError('no pattern provided')
        patterns.append(positional.pop(0))

    paths = positional or [STDIN_SENTINEL]
    return patterns, paths


def fail(message: str) -> None:
    click.echo(f'scanr: {message}', err=True)
    sys.exit(EXIT_ERROR)


@click.command(context_settings=dict(help_option_names=['--help']))
@click.argument('args', nargs=-1, metavar='[PATTERN] [PATH]...')
@click.option(
    '--regexp',
    '-e',
    'regexp',
    type=str,
    multiple=True,
    help='Pattern to search (can be specified multiple times)',
)
@click.option(
    '--file',
    '-f',
    'pattern_file',
    type=click.Path(exists=True, dir_okay=False),
    help='Read patterns from FILE, one per line',
)
@click.option('--ignore-case', '-i', is_flag=True, help='Ignore case distinctions')
@click.option('--invert-match', '-v', is_flag=True, help='Select non-matching lines')
@click.option('--word-regexp', '-w', 'whole_word', is_flag=True, help='Match only whole words')
@click.option('--line-regexp', '-x', 'whole_line', is_flag=True, help='Match only whole lines')
@click.option('--regex', '-E', 'use_regex', is_flag=True, help='Treat patterns as regular expressions')
@click.option('--recursive', '-r', is_flag=True, help='Search directories recursively')
@click.option('--line-number', '-n', 'show_line_numbers', is_flag=True, help='Prefix lines with line numbers')
@click.option(
    '--with-filename/--no-filename',
    '-H',
    'with_filename',
    default=None,
    help='Force file name prefixes on or off (default: on for several inputs or -r)',
)
@click.option('--count', '-c', 'count_only', is_flag=True, help='Print only a count of matching lines per file')
@click.option(
    '--files-with-matches', '-l', 'list_filenames_only', is_flag=True, help='Print only names of matching files'
)
@click.option('--only-matching', '-o', is_flag=True, help='Print only the matched parts of lines')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all normal output')
@click.option('--after-context', '-A', 'after', type=int, help='Lines of trailing context')
@click.option('--before-context', '-B', 'before', type=int, help='Lines of leading context')
@click.option('--context', '-C', 'context', type=int, help='Lines of leading and trailing context')
@click.option('--threads', '-j', 'threads', type=int, help='Worker threads (default: SCANR_THREADS or CPU count)')
@click.option(
    '--color',
    'color_mode',
    type=click.Choice(['always', 'never', 'auto']),
    default='auto',
    show_default=True,
    help='When to use colors',
)
@click.option('--no-color', is_flag=True, help='Disable colored output (same as --color=never)')
@click.option('--debug', is_flag=True, help='Enable debug logging on stderr')
@click.version_option(version=__version__, prog_name='scanr')
def scan_command(
    args,
    regexp,
    pattern_file,
    ignore_case,
    invert_match,
    whole_word,
    whole_line,
    use_regex,
    recursive,
    show_line_numbers,
    with_filename,
    count_only,
    list_filenames_only,
    only_matching,
    quiet,
    after,
    before,
    context,
    threads,
    color_mode,
    no_color,
    debug,
):
    """
    Search files for lines matching patterns, using several worker threads.

    \b
    Examples:
        scanr error app.log                     # Literal search
        scanr -i -n error app.log other.log     # Ignore case, line numbers
        scanr -E "err(or)?" -r /var/log         # Regex, recursive
        scanr -C 2 -e foo -e bar notes.txt      # Two patterns with context
        scanr -c error *.log                    # Counts per file
        cat app.log | scanr -o "id=[0-9]+" -E   # Only the matched parts

    \b
    Exit status:
        0 if a line matched, 1 if none did, 2 on error.
    """
    setup_logging(debug)

    try:
        patterns, inputs = resolve_patterns_and_paths(args, regexp, pattern_file)
        config = ScanConfig.from_options(
            context=context,
            ignore_case=ignore_case,
            invert_match=invert_match,
            whole_word=whole_word,
            whole_line=whole_line,
            use_regex=use_regex,
            recursive=recursive,
            show_line_numbers=show_line_numbers,
            with_filename=with_filename,
            count_only=count_only,
            list_filenames_only=list_filenames_only,
            only_matching=only_matching,
            quiet=quiet,
            before_context=before,
            after_context=after,
            thread_count=threads,
            color_mode='never' if no_color else color_mode,
        )
        pattern_set = compile_patterns(
            patterns,
            MatchOptions(
                ignore_case=config.ignore_case,
                whole_word=config.whole_word,
                whole_line=config.whole_line,
                use_regex=config.use_regex,
            ),
        )
    except (InvalidArgument, PatternError) as e:
        fail(str(e))

    fs_errors: list[FileSystemError] = []
    paths = list(expand_paths(inputs, config.recursive, fs_errors.append))

    sink = OutputSink(config, show_filename=config.show_filename(len(paths)), colorize=config.colorize())
    for error in fs_errors:
        sink.report_error(error)

    if not paths:
        if not config.quiet:
            click.echo('scanr: no valid files to process', err=True)
        sys.exit(EXIT_NO_MATCH)

    summary = Dispatcher(pattern_set, config, sink).run(paths)

    if sink.should_summarize(len(paths)):
        sink.write_summary(summary)

    sys.exit(EXIT_MATCH if summary.found else EXIT_NO_MATCH)
