import itertools
import logging
import threading
from abc import abstractmethod
from enum import Enum

from commlink.link.rate import DataRateLog, DEFAULT_BUFFER_SIZE
from commlink.support.events import EventSource

logger = logging.getLogger(__name__)


class LinkError(Exception):
    """ Indicates an error condition with a link. """


class LinkNotConnectedError(LinkError):
    """ Indicates a link is in the disconnected state when a connection is required. """


class LinkConnectError(LinkError):
    """ Indicates the link could not establish a connection to its peer. """


class LinkState(Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    DISCONNECTING = 'disconnecting'


class LinkEvent:
    """ base class for link events. """
    def __init__(self, link):
        self.link = link

    def __repr__(self):
        return '%s(%s)' % (type(self).__name__, self.link.name)


class LinkConnectedEvent(LinkEvent):
    """ The link has a usable connection to its peer. """


class LinkDisconnectedEvent(LinkEvent):
    """ The link's connection to its peer was closed, by either end. """


class BytesReceivedEvent(LinkEvent):
    """ Bytes arrived from the peer. """
    def __init__(self, link, data: bytes):
        super().__init__(link)
        self.data = data


class NameChangedEvent(LinkEvent):
    """ The display name of the link was recomputed. """
    def __init__(self, link, name):
        super().__init__(link)
        self.name = name


class CommunicationErrorEvent(LinkEvent):
    """ A connect attempt failed, or the transport reported an error. """
    def __init__(self, link, name, message):
        super().__init__(link)
        self.name = name
        self.message = message

    def __repr__(self):
        return '%s(%s: %s)' % (type(self).__name__, self.name, self.message)


class LinkIdGenerator:
    """
    Hands out link ids in sequence, starting at 1. Ids are never reused.
    Safe to call from any thread.
    """
    def __init__(self, start=1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return next(self._counter)


# the process-wide id sequence shared by all links that are not given their own generator
next_link_id = LinkIdGenerator()


class Link:
    """
    A communication link: a bidirectional pipe of raw bytes to a single peer.

    Transports subclass this and implement the connection lifecycle. The base class provides
    the identity of the link, its display name, the events it fires and the throughput samples.

    Events fired on `events`:
        BytesReceivedEvent, LinkConnectedEvent, LinkDisconnectedEvent,
        NameChangedEvent, CommunicationErrorEvent
    """

    def __init__(self, id_generator=None, rate_buffer_size=DEFAULT_BUFFER_SIZE):
        self.events = EventSource()
        self._id = (id_generator or next_link_id)()
        self._name = ''
        self.data_rates = DataRateLog(rate_buffer_size)

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def get_id(self) -> int:
        return self._id

    def get_name(self) -> str:
        return self._name

    def _set_name(self, name):
        self._name = name
        self.events.fire(NameChangedEvent(self, name))

    @abstractmethod
    def connect(self) -> bool:
        """
        Connects the link to its peer.
        :return: True if the link is connected. On failure a CommunicationErrorEvent
            is fired and False returned.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> bool:
        """
        Disconnects the link. Disconnecting a link that is not connected does nothing.
        :return: True
        """
        raise NotImplementedError

    @abstractmethod
    def is_connected(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def write_bytes(self, data: bytes):
        raise NotImplementedError

    @abstractmethod
    def bytes_available(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_connection_speed(self) -> int:
        """ the nominal capacity of the transport, in bits per second. """
        raise NotImplementedError

    def get_current_in_data_rate(self) -> int:
        """ Rates are computed from `data_rates` by a DataRateCalculator; the link itself reports 0. """
        return 0

    def get_current_out_data_rate(self) -> int:
        return 0

    def _bytes_received(self, data: bytes):
        try:
            self.events.fire(BytesReceivedEvent(self, data))
        finally:
            self.data_rates.record_in(len(data))

    def _bytes_sent(self, count):
        self.data_rates.record_out(count)

    def _communication_error(self, message):
        logger.warning("%s: %s", self._name, message)
        self.events.fire(CommunicationErrorEvent(self, self._name, message))

    def __str__(self):
        return self._name
