import io
import math
import random

import numpy as np
import pytest

from intstats.coerce import CoercionError
from intstats.histogram import IntegerStats, target_rank


def test_values_at_or_above_capacity_land_in_top_bucket():
    stats = IntegerStats(10)
    for value in (10, 15, 1010):
        stats.add_value(value)
    assert stats.counts == (0,) * 9 + (3,)
    assert stats.total == 3
    # capacity - 1 itself is also the top bucket
    stats.add_value(9)
    assert stats.counts[-1] == 4


def test_total_matches_bucket_sum():
    random.seed(3)
    stats = IntegerStats(20)
    for _ in range(500):
        stats.add_value(random.randint(0, 40))
    assert stats.total == sum(stats.counts) == 500
    assert len(stats) == 500


def test_median_with_clamped_outlier():
    stats = IntegerStats(5, [1, 2, 2, 3, 10])
    assert stats.total == 5
    assert stats.counts == (0, 1, 2, 1, 1)
    assert stats.median() == 2
    assert stats.percentile(50) == 2
    assert stats.get_at(50) == 2


def test_empty_estimator_percentiles_are_minus_one():
    stats = IntegerStats(100)
    for p in range(1, 101):
        assert stats.percentile(p) == -1
    assert stats.median() == -1


def test_percentile_range_checked():
    stats = IntegerStats(10, [1, 2, 3])
    with pytest.raises(ValueError):
        stats.percentile(0)
    with pytest.raises(ValueError):
        stats.percentile(101)


def test_even_count_averages_with_next_occupied_bucket():
    stats = IntegerStats(10, [0, 2, 2, 9])
    # rank 2 is reached at bucket 2; next occupied bucket is 9 -> (2 + 9) // 2
    assert stats.median() == 5


def test_even_count_without_higher_bucket_returns_located_bucket():
    stats = IntegerStats(10, [3, 3])
    assert stats.median() == 3


def test_odd_count_returns_located_bucket_without_averaging():
    stats = IntegerStats(10, [0, 2, 9])
    # rank int(3 / 2) == 1 is already reached at bucket 0
    assert stats.median() == 0
    assert stats.percentile(100) == 9


def test_target_rank_uses_single_precision_division():
    assert target_rank(5, 50) == 2
    assert target_rank(4, 50) == 2
    assert target_rank(5, 90) == 4
    assert target_rank(100, 1) == 1
    assert target_rank(7, 100) == 7
    assert target_rank(0, 50) == 0
    # 2**24 + 1 is not representable as a float32
    assert target_rank(2**24 + 1, 100) == 2**24


def test_percentile_monotone_in_p():
    random.seed(11)
    stats = IntegerStats(60, [random.randint(0, 80) for _ in range(777)])
    results = [stats.percentile(p) for p in range(1, 101)]
    assert results == sorted(results)


def test_percentile_monotone_on_small_even_stream():
    stats = IntegerStats(10, [5, 6, 7, 8])
    results = [stats.percentile(p) for p in range(1, 101)]
    assert results == sorted(results)


def test_median_tracks_numpy_on_large_stream():
    rng = np.random.default_rng(0)
    data = rng.integers(0, 50, size=10_001)
    stats = IntegerStats(50, data.tolist())
    assert abs(stats.median() - np.median(data)) <= 1


def test_percentiles_track_numpy_on_large_stream():
    rng = np.random.default_rng(1)
    data = rng.integers(0, 50, size=20_000)
    stats = IntegerStats(50, data.tolist())
    for p in (10, 25, 75, 90, 99):
        assert abs(stats.percentile(p) - np.percentile(data, p)) <= 1, p


def test_fraction_above():
    stats = IntegerStats(5, [1, 2, 2, 3, 10])
    assert stats.fraction_above(0) == 1.0
    assert stats.fraction_above(3) == pytest.approx(0.4)
    assert stats.fraction_above(4) == pytest.approx(0.2)
    # thresholds are clamped to the histogram range
    assert stats.fraction_above(5) == 0.0
    assert stats.fraction_above(1000) == 0.0
    assert stats.fraction_above(-3) == 1.0
    assert stats.percentage_above(3) == pytest.approx(40.0)


def test_fraction_above_zero_is_one_for_any_nonempty_estimator():
    random.seed(5)
    for _ in range(20):
        stats = IntegerStats(random.randint(1, 30), [random.randint(0, 50) for _ in range(random.randint(1, 40))])
        assert stats.fraction_above(0) == 1.0


def test_fraction_above_on_empty_is_nan():
    stats = IntegerStats(10)
    assert math.isnan(stats.fraction_above(0))
    assert math.isnan(stats.percentage_above(5))


def test_save_writes_one_line_per_bucket():
    stats = IntegerStats(3, [0, 1, 1, 5])
    buf = io.StringIO()
    stats.save(buf)
    assert buf.getvalue() == "0\t1\t0.0\n1\t2\t0.25\n2\t1\t0.75\n"


def test_save_matches_fraction_above():
    random.seed(8)
    stats = IntegerStats(25, [random.randint(0, 30) for _ in range(300)])
    buf = io.StringIO()
    stats.save(buf)
    lines = buf.getvalue().splitlines()
    assert len(lines) == 25
    for i, line in enumerate(lines):
        idx, count, cumulative = line.split("\t")
        assert int(idx) == i
        assert int(count) == stats.counts[i]
        assert float(cumulative) == 1 - stats.fraction_above(i)


def test_bulk_load_coerces_mixed_items():
    stats = IntegerStats(10, [1, 2.9, " 3 ", "4\n", b"5", True, np.int64(6)])
    assert stats.counts == (0, 2, 1, 1, 1, 1, 1, 0, 0, 0)


def test_bulk_load_failure_is_fatal():
    with pytest.raises(CoercionError):
        IntegerStats(10, [1, 2, "three"])
    with pytest.raises(ValueError):
        IntegerStats(10, [1, None])


def test_from_lines():
    stats = IntegerStats.from_lines(10, io.StringIO("1\n2\n 3\n"))
    assert stats.total == 3
    assert stats.percentile(100) == 3


def test_from_lines_blank_line_is_an_error():
    with pytest.raises(CoercionError):
        IntegerStats.from_lines(10, io.StringIO("1\n\n3\n"))


def test_from_file(tmp_path):
    path = tmp_path / "depths.txt"
    path.write_text("".join(f"{v}\n" for v in [4, 4, 5, 7, 200]), encoding="utf-8")
    stats = IntegerStats.from_file(100, path)
    assert stats.total == 5
    assert stats.counts[99] == 1


def test_read_defaults_to_capacity_1000():
    stats = IntegerStats.read(io.StringIO("5\n999\n5000\n"))
    assert stats.capacity == 1000
    assert stats.counts[999] == 2


def test_rejects_negative_values_and_bad_capacity():
    stats = IntegerStats(10)
    with pytest.raises(ValueError):
        stats.add_value(-1)
    assert stats.total == 0
    with pytest.raises(ValueError):
        IntegerStats(0)


def test_summary_statistics_use_raw_values():
    stats = IntegerStats(5, [1, 2, 2, 3, 10])
    assert stats.n == 5
    assert stats.sum == 18
    assert stats.min == 1
    assert stats.max == 10
    assert stats.mean == pytest.approx(3.6)
    assert stats.variance == pytest.approx(13.3)
    assert stats.std_dev == pytest.approx(math.sqrt(13.3))


def test_summary_statistics_empty_and_single():
    empty = IntegerStats(5)
    assert math.isnan(empty.mean)
    assert math.isnan(empty.min)
    one = IntegerStats(5, [4])
    assert one.variance == 0.0


def test_str_includes_median():
    text = str(IntegerStats(5, [1, 2, 2, 3, 10]))
    assert "n: 5" in text
    assert text.endswith("Median: 2\n")


def test_snapshot_round_trip(tmp_path):
    random.seed(2)
    stats = IntegerStats(40, [random.randint(0, 60) for _ in range(250)])
    path = stats.save_state(tmp_path / "state" / "hist.json")
    assert path.exists()
    restored = IntegerStats.load_state(path)
    assert restored.counts == stats.counts
    assert restored.total == stats.total
    assert restored.median() == stats.median()
    assert restored.mean == pytest.approx(stats.mean)
    restored.add_value(3)
    assert restored.total == stats.total + 1


def test_from_snapshot_rejects_inconsistent_counts():
    snap = IntegerStats(3, [0, 1, 2]).snapshot()
    snap["total"] = 7
    with pytest.raises(ValueError):
        IntegerStats.from_snapshot(snap)
    snap = IntegerStats(3, [0, 1, 2]).snapshot()
    snap["capacity"] = 4
    with pytest.raises(ValueError):
        IntegerStats.from_snapshot(snap)
