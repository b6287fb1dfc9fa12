import logging
import selectors
import socket
import threading

logger = logging.getLogger(__name__)

# upper bound on the bytes taken from the socket by one read
MAX_READ = 65536


class SocketConduit:
    """
    A connected TCP socket to a peer.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self.sock.settimeout(None)
        self._selector = selectors.DefaultSelector()
        self._selector.register(sock, selectors.EVENT_READ)
        self._write_lock = threading.Lock()

    @property
    def open(self) -> bool:
        return self.sock.fileno() >= 0

    @property
    def peer(self):
        try:
            return self.sock.getpeername()
        except OSError:
            return None

    def wait_readable(self, timeout) -> bool:
        """
        Waits up to timeout seconds for the socket to have data, or for the peer to close it.
        """
        return bool(self._selector.select(timeout))

    def bytes_available(self) -> int:
        """ the number of bytes that can be read now without blocking. """
        try:
            if not self.open or not self.wait_readable(0):
                return 0
            return len(self.sock.recv(MAX_READ, socket.MSG_PEEK))
        except (OSError, ValueError):
            # closed by another thread
            return 0

    def read_available(self) -> bytes:
        """
        Reads all the bytes currently available, in one buffer.
        Call only once the socket is readable. An empty result means the peer closed the connection.
        """
        count = len(self.sock.recv(MAX_READ, socket.MSG_PEEK))
        if not count:
            return b''
        return self.sock.recv(count)

    def write(self, data: bytes):
        """ Writes all the data, blocking only as the transport's flow control requires. """
        with self._write_lock:
            self.sock.sendall(data)

    def close(self):
        try:
            self._selector.close()
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # the peer may have closed the socket already
            pass
        finally:
            self.sock.close()


class TCPAcceptor:
    """
    A listening socket that accepts peers one at a time. At most one connection is left pending.
    """
    def __init__(self, port, address='0.0.0.0', backlog=1):
        self.address = address
        self.port = port
        self.backlog = backlog
        self.sock = None

    @property
    def listening(self) -> bool:
        return self.sock is not None

    def listen(self):
        """ starts listening, if not already listening. Raises OSError when the port cannot be bound. """
        if self.sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.address, self.port))
            sock.listen(self.backlog)
        except OSError:
            sock.close()
            raise
        self.sock = sock
        logger.debug("listening on %s:%s", self.address, self.bound_port)

    @property
    def bound_port(self):
        """ the port actually bound, which differs from `port` when port 0 was requested. """
        return self.sock.getsockname()[1] if self.sock is not None else None

    def accept(self, timeout) -> SocketConduit:
        """
        Waits up to timeout seconds for a peer to connect.
        :return: the conduit for the new peer, or None if no peer connected in time.
        """
        self.sock.settimeout(timeout)
        try:
            client, address = self.sock.accept()
        except socket.timeout:
            return None
        logger.debug("accepted connection from %s:%s", *address)
        return SocketConduit(client)

    def close(self):
        sock = self.sock
        self.sock = None
        if sock is not None:
            sock.close()
