import pytest

from cashflow_engine.frequency import label_frequency, round_half_up, to_monthly


@pytest.mark.parametrize(
    'avg_interval, expected',
    [
        (5, 'weekly'),
        (9, 'weekly'),
        (9.5, None),
        (12, 'fortnightly'),
        (16, 'fortnightly'),
        (20, None),
        (26, 'monthly'),
        (34, 'monthly'),
        (45, None),
        (91, None),
        (0, None),
    ],
)
def test_frequency_bands_are_closed(avg_interval, expected):
    assert label_frequency(avg_interval) == expected


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(7.49) == 7


def test_to_monthly_uses_intuitive_multipliers():
    assert to_monthly(50000, 'weekly') == 200000
    assert to_monthly(277800, 'fortnightly') == 555600
    assert to_monthly(1200000, 'quarterly') == 400000
    assert to_monthly(6000000, 'yearly') == 500000


def test_to_monthly_rejects_unknown_frequency():
    with pytest.raises(ValueError):
        to_monthly(100, 'hourly')
