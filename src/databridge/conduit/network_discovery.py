"""
Discovers the network paths (interfaces) of this host and classifies them by transport and capability.
"""

import ipaddress
import logging
import socket
from collections import namedtuple

import psutil

from databridge.conduit.discovery import ResourceDiscovery

logger = logging.getLogger(__name__)

TRANSPORT_CELLULAR = 'cellular'
TRANSPORT_WIFI = 'wifi'
TRANSPORT_ETHERNET = 'ethernet'
TRANSPORT_LOOPBACK = 'loopback'
TRANSPORT_OTHER = 'other'

CAPABILITY_INTERNET = 'internet'
CAPABILITY_NOT_RESTRICTED = 'not_restricted'

DEFAULT_CELLULAR_PREFIXES = ('wwan', 'ppp', 'rmnet', 'ccmni', 'wwp')
WIFI_PREFIXES = ('wlan', 'wlp', 'wlx', 'wifi')
ETHERNET_PREFIXES = ('eth', 'enp', 'eno', 'ens', 'enx', 'en')
LOOPBACK_PREFIXES = ('lo',)


class NetworkPath(namedtuple('NetworkPath', 'name address transports capabilities')):
    """
    A network interface through which a connection can be made.
    :param name: the interface name
    :param address: the local address connections are bound to, or None
    :param transports: frozenset of TRANSPORT_* values
    :param capabilities: frozenset of CAPABILITY_* values
    """

    def has_transport(self, transport):
        return transport in self.transports

    def has_capability(self, capability):
        return capability in self.capabilities

    def __str__(self):
        return "%s (%s) %s" % (self.name, self.address, "/".join(sorted(self.transports)))


def is_eligible(path: NetworkPath):
    """
    The bridge only uses cellular paths that reach the internet and are not restricted.
    """
    return path.has_transport(TRANSPORT_CELLULAR) \
        and path.has_capability(CAPABILITY_INTERNET) \
        and path.has_capability(CAPABILITY_NOT_RESTRICTED)


def classify_transport(name, cellular_prefixes=DEFAULT_CELLULAR_PREFIXES):
    """
    >>> classify_transport('wwan0')
    'cellular'
    >>> classify_transport('wlan0')
    'wifi'
    >>> classify_transport('enp3s0')
    'ethernet'
    >>> classify_transport('tun0')
    'other'
    """
    lower = name.lower()
    for prefixes, transport in ((cellular_prefixes, TRANSPORT_CELLULAR),
                                (LOOPBACK_PREFIXES, TRANSPORT_LOOPBACK),
                                (WIFI_PREFIXES, TRANSPORT_WIFI),
                                (ETHERNET_PREFIXES, TRANSPORT_ETHERNET)):
        if lower.startswith(tuple(prefixes)):
            return transport
    return TRANSPORT_OTHER


def routable_address(addresses):
    """
    Picks the address that outbound connections on an interface are bound to:
    the first IPv4 address, else the first global IPv6 address, skipping loopback and link-local.
    :param addresses: the psutil snicaddr entries for one interface
    :return: the address string, or None
    """
    candidates = []
    for addr in addresses:
        if addr.family not in (socket.AF_INET, socket.AF_INET6):
            continue
        try:
            ip = ipaddress.ip_address(addr.address.split('%')[0])
        except ValueError:
            continue
        if ip.is_loopback or ip.is_link_local or ip.is_unspecified:
            continue
        candidates.append(ip)
    candidates.sort(key=lambda ip: ip.version)    # stable, so IPv4 first then enumeration order
    return str(candidates[0]) if candidates else None


class NetworkDiscovery(ResourceDiscovery):
    """
    Enumerates the network interfaces of this host as NetworkPath instances.
    Only eligible paths are offered by first() and available().

    :param cellular_prefixes: interface name prefixes that denote a cellular modem
    :param restricted: interface names that may not be used by the bridge
    """

    def __init__(self, cellular_prefixes=DEFAULT_CELLULAR_PREFIXES, restricted=()):
        super().__init__()
        self.cellular_prefixes = tuple(cellular_prefixes)
        self.restricted = frozenset(restricted)

    def _is_allowed(self, path):
        return is_eligible(path)

    def _fetch_available(self):
        try:
            stats = psutil.net_if_stats()
            addresses = psutil.net_if_addrs()
        except psutil.Error as e:
            raise OSError("unable to enumerate network interfaces: %s" % e) from e
        return [self._describe(name, stats.get(name), addresses.get(name, ())) for name in addresses]

    def _describe(self, name, stat, addresses) -> NetworkPath:
        transport = classify_transport(name, self.cellular_prefixes)
        address = routable_address(addresses)
        capabilities = set()
        if stat is not None and stat.isup and address is not None:
            capabilities.add(CAPABILITY_INTERNET)
        if transport != TRANSPORT_LOOPBACK and name not in self.restricted:
            capabilities.add(CAPABILITY_NOT_RESTRICTED)
        return NetworkPath(name, address, frozenset((transport,)), frozenset(capabilities))
