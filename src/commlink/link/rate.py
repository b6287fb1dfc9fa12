"""
Throughput sampling for links.

Each link keeps a small ring buffer of (byte count, time) samples for the traffic in each direction.
The samples are recorded on the data path, so recording must be cheap: a single lock guards
both directions and is held only while a slot is overwritten.
"""
import threading
import time
from collections import namedtuple

DEFAULT_BUFFER_SIZE = 20

# the window of recent samples considered when computing a current data rate, in milliseconds
DEFAULT_RATE_TIMESPAN = 500

INBOUND = 'in'
OUTBOUND = 'out'

RateSample = namedtuple('RateSample', ['count', 'timestamp'])


def now_millis():
    return int(time.time() * 1000)


class RateBuffer:
    """
    A fixed capacity ring buffer of rate samples. When full, each new sample overwrites the oldest.
    The storage is allocated up front and never grows.
    This class does no locking of its own; DataRateLog serializes access.
    """

    def __init__(self, capacity=DEFAULT_BUFFER_SIZE):
        if capacity < 1:
            raise ValueError("rate buffer capacity must be at least 1, not %s" % capacity)
        self.capacity = capacity
        self._counts = [0] * capacity
        self._times = [0] * capacity
        self._index = 0         # the slot the next sample is written to
        self._size = 0

    def record(self, count, timestamp):
        i = self._index
        self._counts[i] = count
        self._times[i] = timestamp
        i += 1
        if i == self.capacity:
            i = 0
        self._index = i
        if self._size < self.capacity:
            self._size += 1

    @property
    def index(self):
        return self._index

    def __len__(self):
        return self._size

    def samples(self):
        """
        :return: the retained samples, most recent first.
        """
        result = []
        i = self._index
        for _ in range(self._size):
            i = i - 1 if i else self.capacity - 1
            result.append(RateSample(self._counts[i], self._times[i]))
        return result


class DataRateLog:
    """
    The inbound and outbound rate buffers of one link, guarded by a single lock.
    """

    def __init__(self, capacity=DEFAULT_BUFFER_SIZE, clock=now_millis):
        self._buffers = {
            INBOUND: RateBuffer(capacity),
            OUTBOUND: RateBuffer(capacity)
        }
        self._lock = threading.Lock()
        self.clock = clock

    def record_sample(self, count, timestamp=None, direction=INBOUND):
        buffer = self._buffers[direction]
        if timestamp is None:
            timestamp = self.clock()
        with self._lock:
            buffer.record(count, timestamp)

    def record_in(self, count, timestamp=None):
        self.record_sample(count, timestamp, INBOUND)

    def record_out(self, count, timestamp=None):
        self.record_sample(count, timestamp, OUTBOUND)

    def samples(self, direction):
        """ a snapshot of the samples in the given direction, most recent first. """
        buffer = self._buffers[direction]
        with self._lock:
            return buffer.samples()

    @property
    def inbound(self):
        return self.samples(INBOUND)

    @property
    def outbound(self):
        return self.samples(OUTBOUND)


class DataRateCalculator:
    """
    Computes the current data rate, in bits per second, from a link's recent samples.
    Only samples newer than `timespan` milliseconds are considered. The rate is the number
    of bits transferred over the time spanned by those samples; fewer than two samples give 0.
    """

    def __init__(self, timespan=DEFAULT_RATE_TIMESPAN, clock=now_millis):
        self.timespan = timespan
        self.clock = clock

    def rate(self, samples):
        """
        :param samples: rate samples, most recent first, as returned by DataRateLog.samples()
        """
        cutoff = self.clock() - self.timespan
        total_bytes = 0
        total_time = 0
        last_time = None
        for sample in samples:
            if sample.timestamp < cutoff:
                break
            if last_time is not None:
                total_time += last_time - sample.timestamp
            total_bytes += sample.count
            last_time = sample.timestamp
        if not total_time:
            return 0
        return total_bytes * 8 * 1000 // total_time

    def in_rate(self, log: DataRateLog):
        return self.rate(log.inbound)

    def out_rate(self, log: DataRateLog):
        return self.rate(log.outbound)
