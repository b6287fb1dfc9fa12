"""
A link that carries raw bytes over TCP, either as a client that connects out to a host and port,
or as a server that listens on a port and accepts a single peer.

The connection lifecycle runs on the caller's thread: connect() blocks until the peer is
reached or the connect timeout expires, disconnect() blocks until the pump thread has exited
and the socket is closed. Inbound data is delivered by the pump thread as BytesReceivedEvent.
"""
import ipaddress
import logging
import socket
import threading

from commlink.link.base import Link, LinkState, LinkConnectError, LinkNotConnectedError, \
    LinkConnectedEvent, LinkDisconnectedEvent
from commlink.link.pump import LinkPump, DEFAULT_POLL_INTERVAL
from commlink.link.rate import DEFAULT_BUFFER_SIZE
from commlink.link.socket_conduit import SocketConduit, TCPAcceptor
from commlink.support.hexdump import hexdump

logger = logging.getLogger(__name__)
io_logger = logging.getLogger(__name__ + '.io')

DEFAULT_CONNECT_TIMEOUT = 5.0

# nominal capacity of a TCP link, 54 Mbit
CONNECTION_SPEED = 54000000

ANY_ADDRESS = '0.0.0.0'


def normalize_address(address):
    """
    >>> normalize_address(ipaddress.ip_address('127.0.0.1'))
    '127.0.0.1'
    >>> normalize_address(' localhost ')
    'localhost'
    """
    return str(address).strip()


def check_port(port):
    """
    >>> check_port(5760)
    5760
    >>> check_port('80')
    80
    """
    port = int(port)
    if not 0 <= port <= 65535:
        raise ValueError("port must be between 0 and 65535, not %d" % port)
    return port


class TCPLink(Link):
    """
    A link to a single peer over TCP.

    :param address: the host to connect to in client mode. Server mode listens on all addresses.
    :param port: the port to connect to, or listen on
    :param as_server: True to wait for a peer to connect, False to connect to the peer
    """

    def __init__(self, address, port, as_server=False, connect_timeout=DEFAULT_CONNECT_TIMEOUT,
                 poll_interval=DEFAULT_POLL_INTERVAL, rate_buffer_size=DEFAULT_BUFFER_SIZE,
                 debug_io=False, id_generator=None):
        super().__init__(id_generator, rate_buffer_size)
        self._address = normalize_address(address)
        self._port = check_port(port)
        self._as_server = bool(as_server)
        self.connect_timeout = connect_timeout
        self.poll_interval = poll_interval
        self.debug_io = debug_io
        self._state = LinkState.IDLE
        self._state_lock = threading.RLock()
        self._conduit = None            # the connected peer
        self._socket_is_connected = False
        self._acceptor = None           # listens for the peer in server mode
        self._pump = None
        self._reset_name()
        logger.info("%s created", self.name)

    @property
    def address(self):
        return self._address

    @property
    def port(self):
        return self._port

    @property
    def as_server(self):
        return self._as_server

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def listening_port(self):
        """ the port bound by the acceptor while listening in server mode, otherwise None. """
        acceptor = self._acceptor
        return acceptor.bound_port if acceptor is not None else None

    def _reset_name(self):
        self._set_name("TCP %s (host:%s port:%d)" % ("Server" if self._as_server else "Link",
                                                     self._address, self._port))

    def _reconfigure(self, apply):
        """
        applies a configuration change. Any peer connection or listening socket is closed first,
        and the link reconnects afterwards only if it was connected.
        """
        reconnect = self.is_connected()
        if reconnect or self._acceptor is not None:
            self.disconnect()
        apply()
        self._reset_name()
        if reconnect:
            self.connect()

    def set_host_address(self, address):
        address = normalize_address(address)

        def apply():
            self._address = address
        self._reconfigure(apply)

    def set_port(self, port):
        port = check_port(port)

        def apply():
            self._port = port
        self._reconfigure(apply)

    def set_as_server(self, as_server):
        as_server = bool(as_server)
        if as_server == self._as_server:
            return

        def apply():
            self._as_server = as_server
        self._reconfigure(apply)

    def is_connected(self) -> bool:
        return self._socket_is_connected

    def connect(self) -> bool:
        """
        Connects to the peer, or in server mode waits for the peer to connect.
        :return: True if the link is connected.
        """
        if self.is_connected():
            return True
        self._stop_pump()
        self._state = LinkState.CONNECTING
        try:
            conduit = self._hardware_connect()
        except LinkConnectError as e:
            self._state = LinkState.IDLE
            self._communication_error(str(e))
            return False
        self._pump = LinkPump(self, conduit, self.poll_interval)
        self._pump.start()
        return True

    def _hardware_connect(self) -> SocketConduit:
        if self._as_server:
            return self._server_connect()
        return self._client_connect()

    def _server_connect(self):
        if self._acceptor is None:
            acceptor = TCPAcceptor(self._port, ANY_ADDRESS, backlog=1)
            try:
                acceptor.listen()
            except OSError as e:
                raise LinkConnectError("Error on socket: %s" % (e.strerror or e)) from e
            self._acceptor = acceptor
        conduit = self._acceptor.accept(self.connect_timeout)
        if conduit is None:
            raise LinkConnectError("Connection failed")
        self._new_connection(conduit)
        return conduit

    def _client_connect(self):
        try:
            sock = socket.create_connection((self._address, self._port), self.connect_timeout)
        except socket.timeout as e:
            raise LinkConnectError("Connection failed") from e
        except OSError as e:
            raise LinkConnectError("Error on socket: %s" % (e.strerror or e)) from e
        conduit = SocketConduit(sock)
        self._new_connection(conduit)
        return conduit

    def _new_connection(self, conduit):
        """ adopts the conduit as the active peer and announces the connection. """
        with self._state_lock:
            self._conduit = conduit
            self._socket_is_connected = True
            self._state = LinkState.CONNECTED
        logger.info("%s: connected to %s", self.name, conduit.peer)
        self.events.fire(LinkConnectedEvent(self))

    def disconnect(self) -> bool:
        if self._pump is None and self._conduit is None and self._acceptor is None:
            return True
        self._state = LinkState.DISCONNECTING
        self._stop_pump()
        self._release_conduit()
        acceptor = self._acceptor
        self._acceptor = None
        if acceptor is not None:
            acceptor.close()
        self._state = LinkState.IDLE
        return True

    def close(self):
        """ Disconnects the link. The link is not used afterwards. """
        self.disconnect()
        logger.debug("%s closed", self.name)

    def _stop_pump(self):
        pump = self._pump
        self._pump = None
        if pump is not None:
            pump.stop()

    def _owns(self, conduit):
        return conduit is not None and conduit is self._conduit

    def _release_conduit(self, expected=None):
        """
        Drops and closes the peer connection, announcing the disconnection if there was one.
        :param expected: when given, the conduit is only released if it is still the active one.
        """
        with self._state_lock:
            conduit = self._conduit
            if conduit is None or (expected is not None and conduit is not expected):
                return
            self._conduit = None
            self._socket_is_connected = False
            if self._state is LinkState.CONNECTED:
                self._state = LinkState.IDLE
        conduit.close()
        logger.info("%s: disconnected", self.name)
        self.events.fire(LinkDisconnectedEvent(self))

    def _peer_closed(self, conduit):
        """ called by the pump when the peer closes the connection. """
        self._release_conduit(conduit)

    def _transport_error(self, conduit, e):
        """ called by the pump when reading from the socket fails. """
        self._communication_error("Error on socket: %s" % (e.strerror or e))
        if isinstance(e, ConnectionError):
            self._release_conduit(conduit)

    def write_bytes(self, data: bytes):
        conduit = self._conduit
        if conduit is None:
            raise LinkNotConnectedError("%s is not connected" % self.name)
        data = bytes(data)
        if self.debug_io and io_logger.isEnabledFor(logging.DEBUG):
            self._write_debug_bytes(data)
        try:
            conduit.write(data)
        except OSError as e:
            self._communication_error("Error on socket: %s" % (e.strerror or e))
            return
        self._bytes_sent(len(data))

    def _write_debug_bytes(self, data):
        io_logger.debug("Sent %d bytes to %s:%d data:", len(data), self._address, self._port)
        for line in hexdump(data):
            io_logger.debug(line)

    def bytes_available(self) -> int:
        conduit = self._conduit
        if conduit is None:
            return 0
        return conduit.bytes_available()

    def get_connection_speed(self) -> int:
        return CONNECTION_SPEED

    def __repr__(self):
        return 'TCPLink(%r, %d, as_server=%r)' % (self._address, self._port, self._as_server)
