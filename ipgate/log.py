import logging
import sys

import colorlog

LEVEL_MAP = {"info": logging.INFO, "debug": logging.DEBUG, "error": logging.ERROR, "warning": logging.WARNING}

LOG_COLORS = {
	'DEBUG': 'bold_cyan',
	'INFO': 'bold_green',
	'WARNING': 'bold_yellow',
	'ERROR': 'bold_red',
	'CRITICAL': 'bold_red,bg_white',
}

SECONDARY_LOG_COLORS = {
	'message': {
		'DEBUG': 'white',
		'INFO': 'bold_white',
		'WARNING': 'bold_yellow',
		'ERROR': 'bold_red',
		'CRITICAL': 'bold_red',
	},
}

CONSOLE_FORMAT = (
	'[%(log_color)s%(levelname).1s%(reset)s] '
	'[%(cyan)s%(name)s:%(lineno)d%(reset)s] '
	'%(message_log_color)s%(message)s'
)
FILE_FORMAT = (
	'%(asctime)s '
	'[%(levelname)s] '
	'[%(name)s:%(lineno)d][pid:%(process)d] '
	'%(message)s'
)

def resolve_level(args) -> int:
	if args.very_verbose:
		return logging.DEBUG
	if args.verbose:
		return logging.INFO
	return LEVEL_MAP.get(args.log_level, logging.ERROR)

def init_log(args):
	level = resolve_level(args)

	logger = logging.getLogger()
	logger.setLevel(level)
	# remove all previously installed handlers
	for handler in list(logger.handlers):
		logger.removeHandler(handler)

	if args.log != "console":
		handler = logging.FileHandler(args.log)
		handler.setFormatter(logging.Formatter(FILE_FORMAT))
	else:
		# operator console output goes to stdout, keep logs on stderr
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(colorlog.ColoredFormatter(
			CONSOLE_FORMAT,
			reset=True,
			log_colors=LOG_COLORS,
			secondary_log_colors=SECONDARY_LOG_COLORS,
			style='%'
		))

	logger.addHandler(handler)
	return logger
