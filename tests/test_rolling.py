import pytest

from intstats.rolling import RollingArray, WindowIndexError


def test_window_slides_by_one():
    window = RollingArray(3)
    for v in (1, 2, 3, 4):
        window.add(v)
    assert window.get_at(0) == 2
    assert window.get_at(1) == 3
    assert window.get_at(2) == 4


def test_oldest_first_after_filling_then_one_more():
    n = 5
    window = RollingArray(n)
    values = [10.0, 11.0, 12.0, 13.0, 14.0]
    for v in values:
        window.add(v)
    assert window.get_at(0) == values[0]
    assert window.get_at(n - 1) == values[-1]
    assert window.values() == values
    window.add(15.0)
    assert window.get_at(0) == values[1]
    assert window.get_at(n - 1) == 15.0


def test_starts_full_of_zeros():
    window = RollingArray(4)
    assert window.values() == [0.0, 0.0, 0.0, 0.0]
    window.add(7)
    assert window.values() == [0.0, 0.0, 0.0, 7.0]


def test_set_at_only_touches_one_position():
    window = RollingArray(4)
    for v in (1, 2, 3, 4):
        window.add(v)
    window.set_at(3, 40)
    assert window.get_at(3) == 40
    assert window.values() == [1.0, 2.0, 3.0, 40.0]
    window.set_at(0, -1.5)
    assert window.values() == [-1.5, 2.0, 3.0, 40.0]


def test_set_then_add_keeps_patched_value_in_history():
    window = RollingArray(3)
    window.add(1)
    window.set_at(2, 5)
    window.add(6)
    assert window.values() == [0.0, 5.0, 6.0]


@pytest.mark.parametrize("position", [-1, 5, 100])
def test_out_of_bounds_positions_fail(position):
    window = RollingArray(5)
    with pytest.raises(WindowIndexError) as info:
        window.get_at(position)
    assert info.value.index == position
    assert info.value.size == 5
    assert str(info.value) == f"Index {position} is outside the bounds of window of size 5"
    with pytest.raises(IndexError):
        window.set_at(position, 1.0)


def test_item_access_uses_logical_positions():
    window = RollingArray(3)
    for v in (1, 2, 3, 4):
        window.add(v)
    assert window[0] == 2
    window[1] = 9
    assert list(window) == [2.0, 9.0, 4.0]
    assert len(window) == 3
    with pytest.raises(IndexError):
        window[-1]


def test_values_are_not_narrowed():
    window = RollingArray(2)
    window.add(1.5)
    window.add(70000.25)
    assert window.values() == [1.5, 70000.25]


def test_mean_counts_unwritten_slots_as_zero():
    window = RollingArray(4)
    window.add(2)
    window.add(4)
    assert window.total() == 6.0
    assert window.mean() == 1.5


def test_invalid_size():
    with pytest.raises(ValueError):
        RollingArray(0)
