import pytest

from mqbridge.histogram import Bin, Histogram


def _data():
    return [(i * 37) % 101 for i in range(1000)]


def test_count_matches_adds():
    h = Histogram(160)
    for val in _data():
        h.add(float(val))
    assert h.count() == 1000.0


def test_histogram_trim():
    h = Histogram(10)
    for val in _data():
        h.add(float(val))
    assert len(h.bins) == 10


def test_trim_preserves_total_count_and_order():
    h = Histogram(10)
    for val in _data():
        h.add(float(val))
    assert sum(b.count for b in h.bins) == h.total
    values = [b.value for b in h.bins]
    assert values == sorted(values)


def test_trim_preserves_mean():
    data = _data()
    h = Histogram(5)
    for val in data:
        h.add(float(val))
    assert h.mean() == pytest.approx(sum(data) / len(data))


def test_duplicate_values_share_a_bin():
    h = Histogram(10)
    h.add(5.0)
    h.add(5.0)
    assert h.bins == [Bin(value=5.0, count=2)]


def test_bins_are_sorted_on_insert():
    h = Histogram(10)
    for v in (3.0, 1.0, 2.0):
        h.add(v)
    assert [b.value for b in h.bins] == [1.0, 2.0, 3.0]


def test_quantiles():
    h = Histogram(10)
    for v in (1.0, 2.0, 3.0, 4.0):
        h.add(v)
    assert h.quantile(0.0) == 1.0
    assert h.quantile(0.5) == 2.0
    assert h.quantile(1.0) == 4.0
    assert h.quantile(2.0) == -1


def test_scale():
    h = Histogram(10)
    for v in (2.0, 4.0, 6.0):
        h.add(v)
    h.scale(0.5)
    assert [b.value for b in h.bins] == [1.0, 2.0, 3.0]
    assert h.quantile(0.5) == 2.0


def test_empty_mean_is_zero():
    assert Histogram(10).mean() == 0.0


def test_closest_bins_merge():
    h = Histogram(2)
    for v in (1.0, 2.0, 10.0):
        h.add(v)
    assert h.bins == [Bin(value=1.5, count=2), Bin(value=10.0, count=1)]