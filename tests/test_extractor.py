"""Tests for candidate digit-run extraction."""

from panscan.extractor import (
    MAX_PAN_LENGTH,
    MIN_PAN_LENGTH,
    iter_digit_runs,
    strip_separators,
)


def _digits(line):
    return [run.digits for run in iter_digit_runs(line)]


class TestIterDigitRuns:
    def test_plain_run(self):
        runs = list(iter_digit_runs('pan=4111111111111111;'))
        assert len(runs) == 1
        assert runs[0].digits == '4111111111111111'
        assert runs[0].start == 4
        assert runs[0].end == 20
        assert runs[0].separators == 0

    def test_hyphen_separators(self):
        runs = list(iter_digit_runs('Card: 4111-1111-1111-1111 exp 12/25'))
        assert len(runs) == 1
        assert runs[0].digits == '4111111111111111'
        assert runs[0].separators == 3
        assert runs[0].start == 6
        assert runs[0].end == 25

    def test_space_separators(self):
        runs = list(iter_digit_runs('4111 1111 1111 1111'))
        assert runs[0].digits == '4111111111111111'
        assert runs[0].separators == 3

    def test_repeated_separators_counted(self):
        runs = list(iter_digit_runs('4111 - 1111 - 1111 - 1111'))
        assert runs[0].digits == '4111111111111111'
        assert runs[0].separators == 9

    def test_trailing_separator_not_in_run(self):
        line = '4111 1111 1111 1111 - end'
        run = next(iter_digit_runs(line))
        assert line[run.start:run.end] == '4111 1111 1111 1111'

    def test_decimal_point_terminates_run(self):
        # 10 + 6 digits; bridging the '.' would give a 16-digit run
        assert _digits('4111111111.111111') == []

    def test_decimal_after_pan(self):
        assert _digits('Total: 4111111111111111.00') == ['4111111111111111']

    def test_slash_terminates_run(self):
        assert _digits('411111111/1111111') == []

    def test_tab_is_not_a_separator(self):
        assert _digits('4111111\t111111111') == []

    def test_letters_start_new_run(self):
        assert _digits('ID4111111111111111X') == ['4111111111111111']

    def test_too_short_discarded(self):
        assert _digits('123456789012') == []

    def test_too_long_discarded(self):
        assert _digits('1' * 20) == []

    def test_bounds_inclusive(self):
        assert _digits('1' * 13) == ['1' * 13]
        assert _digits('1' * 19) == ['1' * 19]

    def test_adjacent_numbers_joined_by_space(self):
        # The space is a separator, so both groups form one 20-digit run
        assert _digits('4111111111111111 2025') == []

    def test_multiple_runs_left_to_right(self):
        line = '4111111111111111, 5555555555554444'
        runs = list(iter_digit_runs(line))
        assert [r.digits for r in runs] == ['4111111111111111', '5555555555554444']
        assert runs[0].start < runs[1].start

    def test_lengths_always_in_window(self):
        line = ' '.join('9' * n for n in range(1, 25)) + ' x ' + ','.join(
            '7' * n for n in range(1, 25))
        for run in iter_digit_runs(line):
            assert MIN_PAN_LENGTH <= len(run.digits) <= MAX_PAN_LENGTH

    def test_comma_separated_groups(self):
        lengths = [len(d) for d in _digits(','.join('7' * n for n in range(10, 22)))]
        assert lengths == list(range(13, 20))

    def test_empty_line(self):
        assert _digits('') == []

    def test_lazy_generator(self):
        gen = iter_digit_runs('4111111111111111')
        assert next(gen).digits == '4111111111111111'

    def test_non_ascii_digits_ignored(self):
        assert _digits('٤' * 16) == []


class TestStripSeparators:
    def test_strip(self):
        assert strip_separators('4111-1111 1111-1111') == '4111111111111111'

    def test_other_punctuation_kept(self):
        assert strip_separators('12.34') == '12.34'
