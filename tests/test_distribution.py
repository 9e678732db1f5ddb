import logging

import pytest

from cashflow_engine.distribution import (
    distribute,
    distribute_with_history,
    fetch_historical_spending,
    validate_distribution,
)


def _amounts(rows):
    return [row.amount_minor_units for row in rows]


def test_equal_gives_remainder_to_first_category():
    rows = distribute(100, ['A', 'B', 'C'], {}, 'equal')

    assert _amounts(rows) == [34, 33, 33]
    assert [row.category_name for row in rows] == ['A', 'B', 'C']
    assert all(row.percentage_of_total == pytest.approx(100 / 3) for row in rows)


def test_proportional_follows_history():
    rows = distribute(100, ['A', 'B'], {'A': 300, 'B': 100}, 'proportional')

    assert _amounts(rows) == [75, 25]
    assert [row.percentage_of_total for row in rows] == [75.0, 25.0]


def test_proportional_last_category_absorbs_rounding():
    rows = distribute(1000, ['A', 'B', 'C'], {'A': 1, 'B': 1, 'C': 1}, 'proportional')

    assert _amounts(rows) == [333, 333, 334]
    # reported share is the true share, not the rounded one
    assert rows[2].percentage_of_total == pytest.approx(100 / 3)


def test_proportional_without_history_matches_equal():
    categories = ['Groceries', 'Dining', 'Transport']
    expected = distribute(1001, categories, {}, 'equal')

    assert distribute(1001, categories, {'Groceries': 0, 'Dining': 0}, 'proportional') == expected
    assert distribute(1001, categories, None, 'proportional') == expected


def test_proportional_ignores_history_outside_category_set():
    rows = distribute(500, ['A', 'B'], {'A': 100, 'B': 100, 'Z': 10_000}, 'proportional')
    assert _amounts(rows) == [250, 250]


def test_manual_takes_amounts_verbatim():
    rows = distribute(100, ['A', 'B', 'C'], {}, 'manual', {'A': 60, 'B': 30})

    assert _amounts(rows) == [60, 30, 0]
    assert [row.percentage_of_total for row in rows] == [60.0, 30.0, 0.0]


def test_manual_with_zero_total_reports_zero_percent():
    rows = distribute(0, ['A'], {}, 'manual', {'A': 50})
    assert rows[0].percentage_of_total == 0.0


def test_manual_without_amounts_falls_back_to_equal():
    assert _amounts(distribute(10, ['A', 'B', 'C'], {}, 'manual')) == [4, 3, 3]


def test_unknown_strategy_falls_back_to_equal():
    assert _amounts(distribute(10, ['A', 'B', 'C'], {'A': 10}, 'zero-based')) == [4, 3, 3]


def test_duplicate_categories_pass_through_independently():
    rows = distribute(10, ['A', 'A', 'B'], {}, 'equal')
    assert [row.category_name for row in rows] == ['A', 'A', 'B']
    assert sum(_amounts(rows)) == 10


def test_empty_categories_give_empty_distribution():
    assert distribute(100, [], {}, 'equal') == []


@pytest.mark.parametrize('strategy', ['equal', 'proportional', 'unknown'])
@pytest.mark.parametrize('total', [0, 1, 7, 99, 100, 12345])
def test_exact_sum_invariant(strategy, total):
    history = {'A': 17, 'B': 5, 'C': 3, 'D': 29}
    rows = distribute(total, ['A', 'B', 'C', 'D'], history, strategy)
    assert sum(_amounts(rows)) == total


def test_validate_manual_shortfall():
    rows = distribute(100, ['A', 'B'], {}, 'manual', {'A': 50, 'B': 40})

    check = validate_distribution(rows, 100)

    assert check.valid is False
    assert check.actual_total == 90
    assert check.difference == -10


def test_validate_exact_distribution():
    check = validate_distribution(distribute(100, ['A', 'B', 'C'], {}, 'equal'), 100)
    assert check.valid
    assert check.difference == 0


def test_failed_lookup_degrades_to_empty_mapping(caplog):
    def broken(categories, months):
        raise ConnectionError('store unavailable')

    with caplog.at_level(logging.ERROR, logger='cashflow_engine'):
        assert fetch_historical_spending(broken, ['A']) == {}
    assert 'Historical spending lookup failed' in caplog.text


def test_distribute_with_history_uses_lookup_for_proportional():
    calls = []

    def lookup(categories, months):
        calls.append((tuple(categories), months))
        return {'A': 300, 'B': 100}

    rows = distribute_with_history(100, ['A', 'B'], 'proportional', lookup, months=6)

    assert _amounts(rows) == [75, 25]
    assert calls == [(('A', 'B'), 6)]


def test_distribute_with_history_skips_lookup_for_other_strategies():
    def lookup(categories, months):
        raise AssertionError('lookup should not be called')

    assert _amounts(distribute_with_history(9, ['A', 'B'], 'equal', lookup)) == [5, 4]


def test_distribute_with_history_survives_lookup_failure():
    def broken(categories, months):
        raise TimeoutError

    assert _amounts(distribute_with_history(9, ['A', 'B'], 'proportional', broken)) == [5, 4]
