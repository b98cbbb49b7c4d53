from __future__ import annotations

import math
import threading

import pytest

from perftest import SamplesStatsCounter


def test_counter_statistics() -> None:
    counter = SamplesStatsCounter([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])

    assert counter.num_samples() == 8
    assert counter.get_min() == 2.0
    assert counter.get_max() == 9.0
    assert counter.get_sum() == 40.0
    assert counter.get_average() == pytest.approx(5.0)
    assert counter.get_variance() == pytest.approx(4.0)
    assert counter.get_standard_deviation() == pytest.approx(2.0)
    assert counter.get_percentile(0.5) == pytest.approx(4.5)
    assert counter.get_percentile(1.0) == 9.0


def test_empty_counter_rejects_statistics() -> None:
    counter = SamplesStatsCounter()

    assert counter.is_empty()
    assert len(counter) == 0
    with pytest.raises(ValueError):
        counter.get_average()


def test_percentile_bounds_checked() -> None:
    counter = SamplesStatsCounter([1.0])
    with pytest.raises(ValueError):
        counter.get_percentile(1.5)


def test_samples_keep_explicit_timestamps() -> None:
    counter = SamplesStatsCounter()
    counter.add_sample(1.5, time_us=100)
    counter.add_sample(2.5)

    samples = counter.get_samples()
    assert samples[0].time_us == 100
    assert samples[1].time_us is not None
    assert [s.value for s in samples] == [1.5, 2.5]


def test_merge_appends_other_samples() -> None:
    left = SamplesStatsCounter([1.0, 2.0])
    right = SamplesStatsCounter([3.0])
    left.merge(right)

    assert left.num_samples() == 3
    assert right.num_samples() == 1
    assert math.isclose(left.get_average(), 2.0)


def test_concurrent_add_sample() -> None:
    counter = SamplesStatsCounter()

    def worker() -> None:
        for i in range(200):
            counter.add_sample(float(i))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counter.num_samples() == 1_600
