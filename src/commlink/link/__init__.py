"""
The link interfaces with a peer that exchanges raw bytes over a transport.

A link owns its connection for as long as it is connected: the socket is created on connect,
read by the link's pump, and closed on disconnect or when the peer closes it.
"""
from commlink.link.base import Link, LinkState, LinkError, LinkNotConnectedError, LinkConnectError, \
    LinkEvent, LinkConnectedEvent, LinkDisconnectedEvent, BytesReceivedEvent, NameChangedEvent, \
    CommunicationErrorEvent, LinkIdGenerator
from commlink.link.rate import DataRateCalculator, DataRateLog, RateBuffer, RateSample
from commlink.link.tcplink import TCPLink

__all__ = ['Link', 'LinkState', 'LinkError', 'LinkNotConnectedError', 'LinkConnectError',
           'LinkEvent', 'LinkConnectedEvent', 'LinkDisconnectedEvent', 'BytesReceivedEvent',
           'NameChangedEvent', 'CommunicationErrorEvent', 'LinkIdGenerator',
           'DataRateCalculator', 'DataRateLog', 'RateBuffer', 'RateSample', 'TCPLink']
