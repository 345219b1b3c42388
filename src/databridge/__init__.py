"""

Serial to TCP data bridge

Relays the raw byte stream of a locally attached serial device (such as a flight controller)
to a fixed TCP server reached over a cellular network, and back again.

- Conduit: abstraction of a bi-directional byte channel. SerialPort and SocketTransport.
- Connector: opens a conduit to an endpoint, turning library errors into ConnectorError.
- resource discovery - enumerates what is present on the host and offers the first eligible one.
    SerialDiscovery for attached serial devices, NetworkDiscovery for cellular network paths.
- TransportLocator - combines discovery and connectors, returning freshly opened transports,
  or None when nothing was found.
- BridgeRelay - pumps bytes in both directions until either side fails.
- ConnectionSupervisor - runs the retry loop: wait, connect the socket, open the serial device,
  relay, close both, and go round again until stopped.

The operator sees progress through a log sink; ConsoleLogSink writes to the logging module.


## Threading

The supervisor's retry loop runs on its own thread. While bridging, the socket to serial
direction runs on that thread and serial to socket runs on a serial listener thread.
start(), stop() and restart() may be called from any thread; stop() returns once the loop
thread has finished.
"""
