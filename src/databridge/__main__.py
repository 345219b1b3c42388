"""Entry point: load the configuration and keep the data bridge running until told to stop."""

import argparse
import logging
import signal
import sys
import threading

from configobj import ConfigObjError

from databridge.conduit.network_discovery import NetworkDiscovery
from databridge.conduit.serial_conduit import SerialDiscovery, describe_port
from databridge.config.settings import BridgeSettings, load_settings
from databridge.console import ConsoleLogSink
from databridge.locator import TransportLocator
from databridge.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)

log_format = '%(asctime)s %(levelname)-7s %(threadName)s %(name)s: %(message)s'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='databridge',
                                     description='Bridge a serial device to a TCP server over a cellular network.')
    parser.add_argument('--config', metavar='FILE', help='configuration file overriding all others')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages')
    parser.add_argument('--list', action='store_true',
                        help='list the eligible network paths and serial devices, then exit')
    return parser.parse_args(argv)


def network_discovery(settings: BridgeSettings):
    return NetworkDiscovery(settings.cellular_prefixes, settings.restricted_interfaces)


def build_supervisor(settings: BridgeSettings, log_sink=None) -> ConnectionSupervisor:
    """
    Wires up the supervisor. Serial writes may block for as long as the retry delay.
    """
    log_sink = log_sink or ConsoleLogSink()
    locator = TransportLocator(network_discovery(settings), SerialDiscovery(), settings.endpoint,
                               write_timeout=settings.retry_delay, connect_timeout=settings.connect_timeout,
                               log_sink=log_sink)
    return ConnectionSupervisor(locator, settings.retry_strategy, log_sink)


def list_resources(settings: BridgeSettings, out=sys.stdout):
    for path in network_discovery(settings).available():
        print("network path %s" % (path,), file=out)
    for info in SerialDiscovery().available():
        print("serial device %s %s" % (info.device, describe_port(info)), file=out)


def install_signal_handlers(supervisor: ConnectionSupervisor, stopped: threading.Event):
    """
    SIGTERM ends the program, SIGHUP restarts the bridge where the platform has it.
    """
    signal.signal(signal.SIGTERM, lambda signum, frame: stopped.set())
    if hasattr(signal, 'SIGHUP'):
        signal.signal(signal.SIGHUP, lambda signum, frame: supervisor.restart())


def run(supervisor: ConnectionSupervisor, stopped: threading.Event, poll=1.0):
    """ runs the supervisor until stopped is set or the user interrupts """
    supervisor.start()
    try:
        while not stopped.wait(poll):     # wake periodically so signal handlers get to run
            pass
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        supervisor.stop()


def main(argv=None):
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (ConfigObjError, IOError) as e:
        print("Error: %s" % e, file=sys.stderr)
        return 1
    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level, format=log_format)
    logger.debug("settings %r", settings)

    if args.list:
        list_resources(settings)
        return 0

    supervisor = build_supervisor(settings)
    stopped = threading.Event()
    install_signal_handlers(supervisor, stopped)
    run(supervisor, stopped)
    return 0


if __name__ == "__main__":
    sys.exit(main())
