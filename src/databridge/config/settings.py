import logging

from databridge.conduit.network_discovery import DEFAULT_CELLULAR_PREFIXES
from databridge.config.config import fetch_conf_path, load_config
from databridge.connector.socketconn import DEFAULT_CONNECT_TIMEOUT, DEFAULT_ENDPOINT, EndpointConfig
from databridge.support.retry_strategy import DEFAULT_RETRY_DELAY, FixedDelayRetryStrategy

logger = logging.getLogger(__name__)

config_name = 'databridge'


class BridgeSettings:
    """
    The tunable parts of the bridge. The serial line settings are fixed and not among them.
    """

    def __init__(self, endpoint=DEFAULT_ENDPOINT, connect_timeout=DEFAULT_CONNECT_TIMEOUT,
                 retry_delay=DEFAULT_RETRY_DELAY, cellular_prefixes=DEFAULT_CELLULAR_PREFIXES,
                 restricted_interfaces=(), log_level='INFO'):
        self.endpoint = endpoint
        self.connect_timeout = connect_timeout
        self.retry_delay = retry_delay
        self.cellular_prefixes = tuple(cellular_prefixes)
        self.restricted_interfaces = frozenset(restricted_interfaces)
        self.log_level = log_level

    @staticmethod
    def from_config(conf):
        """ builds the settings from a validated configuration """
        endpoint = fetch_conf_path(conf, ('endpoint',))
        network = fetch_conf_path(conf, ('network',))
        return BridgeSettings(
            endpoint=EndpointConfig(endpoint['host'], endpoint['port']),
            connect_timeout=endpoint['connect_timeout'],
            retry_delay=fetch_conf_path(conf, ('retry', 'delay')),
            cellular_prefixes=network['cellular_prefixes'],
            restricted_interfaces=network['restricted_interfaces'],
            log_level=fetch_conf_path(conf, ('logging', 'level')))

    @property
    def retry_strategy(self):
        return FixedDelayRetryStrategy(self.retry_delay)

    def __repr__(self):
        return "BridgeSettings(endpoint=%s, connect_timeout=%s, retry_delay=%s, cellular_prefixes=%s, " \
               "restricted_interfaces=%s, log_level=%s)" % (
                   self.endpoint, self.connect_timeout, self.retry_delay, list(self.cellular_prefixes),
                   sorted(self.restricted_interfaces), self.log_level)


def load_settings(user_file=None, **kwargs) -> BridgeSettings:
    """
    Loads the layered configuration and turns it into settings.
    :param user_file: a configuration file that overrides all others, or None
    :param kwargs: passed on to load_config
    :raises ConfigObjError: when the configuration does not validate
    :raises IOError: when user_file does not exist
    """
    settings = BridgeSettings.from_config(load_config(config_name, user_file=user_file, **kwargs))
    logger.debug("loaded %r", settings)
    return settings
