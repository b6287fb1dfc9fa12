"""


Communication Links

- Link: a bidirectional pipe of raw bytes between this process and a single peer. Links are
  interchangeable transports for a telemetry system; the bytes carried are not interpreted.
- TCPLink: a link over TCP, as a client (connects out to host:port) or as a server (listens
  on a port and accepts one peer.)
- events - links fire events on their `events` source:
    BytesReceivedEvent, LinkConnectedEvent, LinkDisconnectedEvent, NameChangedEvent,
    CommunicationErrorEvent
- rate samples - each link records (byte count, time) samples of its inbound and outbound
  traffic. DataRateCalculator turns the samples into a current data rate.


## Threading

connect(), disconnect() and the configuration setters run on the caller's thread.
connect() blocks for at most the connect timeout (5 seconds by default) while the peer is reached,
or in server mode, while waiting for the peer to connect.

Once connected, a pump thread reads inbound bytes and fires BytesReceivedEvent on that thread.
Handlers should hand the data off rather than do lengthy work.
write_bytes() writes on the caller's thread.

disconnect() stops the pump and waits for its thread to exit before the socket is closed.

"""
