import sys
import signal
from argparse import ArgumentParser
import argcomplete
import logging

from ipgate.core import Core
from ipgate.console import Console
from ipgate.storage import Storage
from ipgate.whitelist import Whitelist
from ipgate.log import init_log
from ipgate.config import Config
from ipgate.__version__ import __version__

logger = logging.getLogger(__name__)

def build_argparser():
	parser = ArgumentParser(prog="ipgate", description="TCP listener admitting only whitelisted client addresses",
							epilog=("Examples: ipgate -c /etc/ipgate/ipgate.conf"))

	general = parser.add_argument_group('General')
	general.add_argument('-c', '--config', metavar="PATH", default='/etc/ipgate/ipgate.conf',
						 help="(optional) Path to configuration file "
						 "('/etc/ipgate/ipgate.conf', default)")
	general.add_argument('-s', '--storage', metavar="PATH",
						 help="(optional) Directory holding the saved whitelist")
	general.add_argument('-l', '--log', metavar="PATH",
						 help="(optional) Path to log file "
						 "('console' logs to console, default)")
	general.add_argument('-v', '--verbose', action='store_true',
						 help="(optional) Logging in INFO mode")
	general.add_argument('-V', '--very_verbose', action='store_true',
						 help="(optional) Logging in DEBUG mode")
	general.add_argument('--no-console', action='store_true',
						 help="(optional) Don't read operator commands from stdin")
	general.add_argument('--version', action='version', version="%(prog)s " + __version__)

	argcomplete.autocomplete(parser)
	return parser

def main(argv=None):
	args = build_argparser().parse_args(argv)
	config = Config(args.config)
	if not args.log:
		args.log = config.get("log_output")
	args.log_level = config.get("log_level").lower()
	init_log(args)
	logger.info("Started ipgate version '%s'", __version__)

	storage = Storage(args.storage or config.storage_dir())
	console = Console(sys.stdout)
	whitelist = Whitelist(storage, config.get("whitelist_file"))
	whitelist.init(console)

	app = Core(config, whitelist, console, None if args.no_console else sys.stdin.buffer)
	def signal_handler(sig, frame):
		logger.info('Caught signal: %d', sig)
		app.stop()

	signal.signal(signal.SIGTERM, signal_handler)
	signal.signal(signal.SIGINT,  signal_handler)

	logger.info("Accepting connections ...")
	app.run()
	logger.info("ipgate version %s successfully terminated", __version__)
	return 0
