import threading
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, empty, has_length, calling, raises, contains_exactly

from commlink.link.rate import RateBuffer, RateSample, DataRateLog, DataRateCalculator, INBOUND, OUTBOUND


class RateBufferTest(unittest.TestCase):

    def test_empty(self):
        sut = RateBuffer(3)
        assert_that(len(sut), is_(0))
        assert_that(sut.samples(), is_(empty()))

    def test_invalid_capacity(self):
        assert_that(calling(RateBuffer).with_args(0), raises(ValueError))

    def test_samples_most_recent_first(self):
        sut = RateBuffer(3)
        sut.record(10, 1000)
        sut.record(20, 1001)
        assert_that(sut.samples(), contains_exactly(RateSample(20, 1001), RateSample(10, 1000)))
        assert_that(sut.index, is_(2))

    def test_wraps_and_overwrites_oldest(self):
        capacity = 5
        sut = RateBuffer(capacity)
        for i in range(13):
            sut.record(i, 1000 + i)
        assert_that(len(sut), is_(capacity))
        assert_that(sut.samples(), is_([RateSample(i, 1000 + i) for i in range(12, 7, -1)]))
        assert_that(sut.index, is_(13 % capacity))

    def test_exactly_full(self):
        sut = RateBuffer(2)
        sut.record(1, 1)
        sut.record(2, 2)
        assert_that(sut.index, is_(0))
        assert_that(sut.samples(), is_([RateSample(2, 2), RateSample(1, 1)]))

    def test_storage_does_not_grow(self):
        sut = RateBuffer(4)
        for i in range(100):
            sut.record(i, i)
        assert_that(sut._counts, has_length(4))
        assert_that(sut._times, has_length(4))


class DataRateLogTest(unittest.TestCase):

    def test_directions_are_independent(self):
        sut = DataRateLog(4)
        sut.record_in(5, 100)
        sut.record_out(7, 101)
        sut.record_sample(9, 102, OUTBOUND)
        assert_that(sut.inbound, is_([RateSample(5, 100)]))
        assert_that(sut.outbound, is_([RateSample(9, 102), RateSample(7, 101)]))
        assert_that(sut.samples(INBOUND), is_(sut.inbound))

    def test_clock_used_when_no_timestamp(self):
        clock = Mock(return_value=1234)
        sut = DataRateLog(clock=clock)
        sut.record_in(3)
        assert_that(sut.inbound, is_([RateSample(3, 1234)]))

    def test_concurrent_recording_stays_bounded(self):
        sut = DataRateLog(8)

        def record(direction):
            for i in range(500):
                sut.record_sample(1, i, direction)

        threads = [threading.Thread(target=record, args=(d,)) for d in (INBOUND, OUTBOUND, INBOUND)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert_that(sut.inbound, has_length(8))
        assert_that(sut.outbound, has_length(8))


class DataRateCalculatorTest(unittest.TestCase):

    def test_no_samples(self):
        sut = DataRateCalculator(clock=lambda: 10000)
        assert_that(sut.rate([]), is_(0))

    def test_single_sample_has_no_timespan(self):
        sut = DataRateCalculator(clock=lambda: 10000)
        assert_that(sut.rate([RateSample(100, 9900)]), is_(0))

    def test_rate_in_bits_per_second(self):
        sut = DataRateCalculator(timespan=500, clock=lambda: 10000)
        samples = [RateSample(100, 9900), RateSample(100, 9800), RateSample(50, 9700)]
        # 250 bytes over 200ms
        assert_that(sut.rate(samples), is_(10000))

    def test_old_samples_are_ignored(self):
        sut = DataRateCalculator(timespan=500, clock=lambda: 10000)
        samples = [RateSample(100, 9900), RateSample(100, 9800), RateSample(10000, 9000)]
        # 200 bytes over 100ms
        assert_that(sut.rate(samples), is_(16000))

    def test_rates_from_log(self):
        log = DataRateLog(clock=lambda: 0)
        log.record_in(10, 9000)
        log.record_in(10, 9500)
        log.record_out(1, 9990)
        sut = DataRateCalculator(timespan=1000, clock=lambda: 10000)
        # 20 bytes over 500ms
        assert_that(sut.in_rate(log), is_(320))
        assert_that(sut.out_rate(log), is_(0))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
