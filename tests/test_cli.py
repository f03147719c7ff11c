"""Tests for the scanr CLI command"""

import os

import pytest
from click.testing import CliRunner

from scanr.cli.scan import read_pattern_file, resolve_patterns_and_paths, scan_command
from scanr.errors import InvalidArgument


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def logs(tmp_path):
    """Two log files and a nested directory"""
    first = tmp_path / 'first.log'
    first.write_text('boot ok\nan error here\nrunning\nERROR again\nshutdown\n')
    second = tmp_path / 'second.log'
    second.write_text('error: disk\nfine\n')
    nested = tmp_path / 'nested'
    nested.mkdir()
    (nested / 'third.log').write_text('no problems\nerror deep down\n')
    return tmp_path


class TestResolvePatternsAndPaths:
    """Tests for resolve_patterns_and_paths()"""

    def test_first_positional_is_pattern(self):
        assert resolve_patterns_and_paths(('foo', 'a', 'b'), (), None) == (['foo'], ['a', 'b'])

    def test_explicit_patterns_make_all_positionals_paths(self):
        assert resolve_patterns_and_paths(('a', 'b'), ('x', 'y'), None) == (['x', 'y'], ['a', 'b'])

    def test_no_path_means_stdin(self):
        assert resolve_patterns_and_paths(('foo',), (), None) == (['foo'], ['-'])

    def test_pattern_file(self, tmp_path):
        pattern_file = tmp_path / 'patterns.txt'
        pattern_file.write_text('alpha\nbeta\n')
        assert resolve_patterns_and_paths(('in.txt',), ('gamma',), str(pattern_file)) == (
            ['gamma', 'alpha', 'beta'],
            ['in.txt'],
        )

    def test_unreadable_pattern_file(self, tmp_path):
        with pytest.raises(InvalidArgument):
            read_pattern_file(str(tmp_path / 'missing.txt'))

    def test_undecodable_pattern_file(self, tmp_path):
        pattern_file = tmp_path / 'patterns.txt'
        pattern_file.write_bytes(b'caf\xe9\n')
        with pytest.raises(InvalidArgument, match='not valid UTF-8'):
            read_pattern_file(str(pattern_file))


class TestScanCommand:
    """End-to-end tests through CliRunner"""

    def test_single_file_match(self, runner, logs):
        result = runner.invoke(scan_command, ['-i', '-n', 'ERROR', str(logs / 'first.log')])
        assert result.exit_code == 0
        assert result.stdout == '2:an error here\n4:ERROR again\n'

    def test_no_match_exit_code(self, runner, logs):
        result = runner.invoke(scan_command, ['missing-word', str(logs / 'first.log')])
        assert result.exit_code == 1
        assert result.stdout == ''

    def test_multiple_files_prefix_and_summary(self, runner, logs):
        first, second = str(logs / 'first.log'), str(logs / 'second.log')
        result = runner.invoke(scan_command, ['-j', '1', 'error', first, second])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert f'{first}:an error here' in lines
        assert f'{second}:error: disk' in lines
        assert lines[-1] == '2 matches in 2 files'

    def test_single_input_has_no_summary(self, runner, logs):
        result = runner.invoke(scan_command, ['error', str(logs / 'first.log')])
        assert 'matches in' not in result.stdout

    def test_count_mode_has_no_summary(self, runner, logs):
        first, second = str(logs / 'first.log'), str(logs / 'second.log')
        result = runner.invoke(scan_command, ['-c', '-i', 'error', first, second])
        assert result.exit_code == 0
        assert sorted(result.stdout.splitlines()) == sorted([f'{first}:2', f'{second}:1'])

    def test_list_mode(self, runner, logs):
        first, second = str(logs / 'first.log'), str(logs / 'second.log')
        result = runner.invoke(scan_command, ['-l', 'disk', first, second])
        assert result.stdout == f'{second}\n'

    def test_quiet_mode(self, runner, logs):
        result = runner.invoke(scan_command, ['-q', 'error', str(logs / 'first.log'), str(logs / 'second.log')])
        assert result.exit_code == 0
        assert result.stdout == ''

    def test_context(self, runner, logs):
        result = runner.invoke(scan_command, ['-n', '-C', '1', 'running', str(logs / 'first.log')])
        assert result.stdout == '2-an error here\n3:running\n4-ERROR again\n'

    def test_only_matching(self, runner, tmp_path):
        path = tmp_path / 'o.txt'
        path.write_text('foobar baz foo\n')
        result = runner.invoke(scan_command, ['-o', '-e', 'foo', '-e', 'bar', str(path)])
        assert result.stdout == 'foo\nbar\nfoo\n'

    def test_whole_word(self, runner, tmp_path):
        path = tmp_path / 'w.txt'
        path.write_text('concatenate\nthe cat sat\n')
        result = runner.invoke(scan_command, ['-w', '-n', 'cat', str(path)])
        assert result.stdout == '2:the cat sat\n'

    def test_regex_mode(self, runner, logs):
        result = runner.invoke(scan_command, ['-E', '^(boot|shutdown)', str(logs / 'first.log')])
        assert result.stdout == 'boot ok\nshutdown\n'

    def test_recursive_directory(self, runner, logs):
        result = runner.invoke(scan_command, ['-r', '-j', '3', 'error', str(logs)])
        assert result.exit_code == 0
        third = os.path.join(str(logs), 'nested', 'third.log')
        assert f'{third}:error deep down' in result.stdout.splitlines()
        assert result.stdout.splitlines()[-1] == '3 matches in 3 files'

    def test_directory_without_recursive(self, runner, logs):
        result = runner.invoke(scan_command, ['error', str(logs), str(logs / 'second.log')])
        assert 'Is a directory' in result.stderr
        assert 'Is a directory' not in result.stdout
        assert 'error: disk' in result.stdout

    def test_unreadable_input_reported_on_stderr(self, runner, logs):
        missing = str(logs / 'missing.log')
        result = runner.invoke(scan_command, ['-i', 'error', missing, str(logs / 'first.log')])
        assert result.exit_code == 0
        assert missing in result.stderr
        assert missing not in result.stdout
        assert result.stdout.splitlines()[-1] == '2 matches in 1 file'

    def test_stdin(self, runner):
        result = runner.invoke(scan_command, ['-n', 'beta'], input='alpha\nbeta\ngamma\n')
        assert result.exit_code == 0
        assert result.stdout == '2:beta\n'

    def test_invalid_regex_is_fatal(self, runner, logs):
        result = runner.invoke(scan_command, ['-E', '(oops', str(logs / 'first.log')])
        assert result.exit_code == 2
        assert 'invalid pattern' in result.stderr
        assert result.stdout == ''

    def test_negative_context_is_fatal(self, runner, logs):
        result = runner.invoke(scan_command, ['--after-context=-1', 'error', str(logs / 'first.log')])
        assert result.exit_code == 2
        assert 'after_context' in result.stderr

    def test_zero_threads_is_fatal(self, runner, logs):
        result = runner.invoke(scan_command, ['-j', '0', 'error', str(logs / 'first.log')])
        assert result.exit_code == 2
        assert 'thread_count' in result.stderr

    @pytest.mark.parametrize('value', ['0', '-2'])
    def test_non_positive_env_threads_is_fatal(self, runner, logs, value):
        result = runner.invoke(scan_command, ['error', str(logs / 'second.log')], env={'SCANR_THREADS': value})
        assert result.exit_code == 2
        assert 'thread_count' in result.stderr
        assert result.stdout == ''

    def test_undecodable_pattern_file_is_fatal(self, runner, logs, tmp_path):
        pattern_file = tmp_path / 'patterns.txt'
        pattern_file.write_bytes(b'caf\xe9\n')
        result = runner.invoke(scan_command, ['-f', str(pattern_file), str(logs / 'first.log')])
        assert result.exit_code == 2
        assert 'not valid UTF-8' in result.stderr

    def test_missing_pattern_is_usage_error(self, runner):
        result = runner.invoke(scan_command, [])
        assert result.exit_code == 2

    def test_color_always(self, runner, logs):
        result = runner.invoke(scan_command, ['--color', 'always', 'error', str(logs / 'second.log')])
        assert '\x1b[' in result.stdout

    def test_no_color_overrides(self, runner, logs):
        result = runner.invoke(scan_command, ['--color', 'always', '--no-color', 'error', str(logs / 'second.log')])
        assert '\x1b[' not in result.stdout

    def test_no_filename(self, runner, logs):
        first, second = str(logs / 'first.log'), str(logs / 'second.log')
        result = runner.invoke(scan_command, ['--no-filename', '-c', 'disk', first, second])
        assert sorted(result.stdout.splitlines()) == ['0', '1']

    def test_with_filename_single_input(self, runner, logs):
        second = str(logs / 'second.log')
        result = runner.invoke(scan_command, ['-H', 'disk', second])
        assert result.stdout == f'{second}:error: disk\n'

    def test_invert(self, runner, logs):
        result = runner.invoke(scan_command, ['-v', '-i', 'error', str(logs / 'first.log')])
        assert result.stdout == 'boot ok\nrunning\nshutdown\n'

    def test_version(self, runner):
        result = runner.invoke(scan_command, ['--version'])
        assert result.exit_code == 0
        assert 'scanr' in result.stdout
