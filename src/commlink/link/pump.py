import logging

from commlink.link.socket_conduit import SocketConduit
from commlink.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)

# how long the pump waits for data before checking whether it has been asked to stop, in seconds
DEFAULT_POLL_INTERVAL = 0.05


class LinkPump(AsyncLoop):
    """
    Moves inbound bytes from a conduit to its link on a background thread, for the lifetime of one connection.

    Each pass of the loop waits up to `poll_interval` for the socket to become readable, and then reads
    everything available in one buffer and hands it to the link. The pump exits when it is stopped,
    when the peer closes the connection, when the transport fails, or when the link no longer owns the conduit.
    """

    def __init__(self, link, conduit: SocketConduit, poll_interval=DEFAULT_POLL_INTERVAL):
        super().__init__(name='link-pump-%d' % link.id, log=logger)
        self.link = link
        self.conduit = conduit
        self.poll_interval = poll_interval

    def startup(self):
        self.logger.debug("%s: pump started", self.link.name)

    def running(self):
        return super().running() and self.link._owns(self.conduit)

    def loop(self):
        conduit = self.conduit
        if not conduit.wait_readable(self.poll_interval):
            return
        try:
            data = conduit.read_available()
        except OSError as e:
            self.stop_event.set()
            self.link._transport_error(conduit, e)
            return
        if data:
            self.link._bytes_received(data)
        else:
            self.stop_event.set()
            self.link._peer_closed(conduit)

    def exception_handler(self, e):
        super().exception_handler(e)
        self.link._communication_error(str(e))
