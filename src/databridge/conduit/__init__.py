"""
The conduit package provides an abstraction of a bi-directional byte stream to an endpoint.
Concrete implementations are a serial port and a TCP socket.

Resource discovery enumerates the serial devices and network paths present on the host.
"""
