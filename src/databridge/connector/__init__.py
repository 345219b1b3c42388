"""
A connector knows how to reach one endpoint, such as a serial device or a TCP server,
and opens a fresh conduit to it on each call to connect().
"""
