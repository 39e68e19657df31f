import sys
import shlex
import logging

logger = logging.getLogger(__name__)

OUTPUT_LEVEL_STANDARD = 0
OUTPUT_LEVEL_ADDINFO = 1
OUTPUT_LEVEL_DEBUG = 2

# command flags
CFGFLAG_SERVER = 1
CFGFLAG_STORE = 2

LEVEL_TO_LOGGING = {
	OUTPUT_LEVEL_STANDARD: logging.INFO,
	OUTPUT_LEVEL_ADDINFO: logging.INFO,
	OUTPUT_LEVEL_DEBUG: logging.DEBUG,
}

class Result(object):
	"""Arguments of one command invocation"""
	def __init__(self, args: list) -> None:
		self.args = args

	def num_arguments(self) -> int:
		return len(self.args)

	def get_string(self, index: int) -> str:
		return self.args[index]


class Command(object):
	def __init__(self, name: str, params: str, flags: int, callback, user, help: str) -> None:
		self.name = name
		self.params = params
		self.flags = flags
		self.callback = callback
		self.user = user
		self.help = help
		# "s[ip]" -> one required string, "" -> no arguments
		self.arity = sum(1 for c in params.split("[")[0] if c == "s")


class Console(object):
	"""Operator command dispatcher.

	Commands are registered by name with a callback taking
	``(result, user)``. ``print`` is the reporting sink every command
	writes to.
	"""
	commands = None
	output = None

	def __init__(self, output=None) -> None:
		self.commands = {}
		self.output = output or sys.stdout
		self.register("help", "", CFGFLAG_SERVER, Console.con_help, self, "List available commands")

	def register(self, name: str, params: str, flags: int, callback, user, help: str) -> None:
		if name in self.commands:
			raise ValueError("command '%s' is already registered" % name)
		self.commands[name] = Command(name, params, flags, callback, user, help)
		logger.debug("Registered console command '%s'", name)

	def print(self, level: int, system: str, text: str) -> None:
		logger.log(LEVEL_TO_LOGGING.get(level, logging.INFO), "[%s] %s", system, text)
		self.output.write("[%s]: %s\n" % (system, text))
		self.output.flush()

	def execute(self, line: str) -> bool:
		"""Run one command line; returns False if nothing was executed"""
		try:
			tokens = shlex.split(line, comments=True)
		except ValueError as e:
			self.print(OUTPUT_LEVEL_STANDARD, "console", "Can't parse command: %s" % e)
			return False
		if not tokens:
			return False

		name, args = tokens[0], tokens[1:]
		command = self.commands.get(name)
		if command is None:
			self.print(OUTPUT_LEVEL_STANDARD, "console", "No such command: %s." % name)
			return False
		if len(args) < command.arity:
			self.print(OUTPUT_LEVEL_STANDARD, "console", "Invalid arguments... Usage: %s %s" % (name, command.params))
			return False
		if command.arity == 1 and len(args) > 1:
			# a trailing string parameter swallows the rest of the line
			args = [" ".join(args)]
		elif command.arity == 0:
			args = []

		logger.debug("Executing command '%s' with %s", name, args)
		command.callback(Result(args), command.user)
		return True

	@staticmethod
	def con_help(result: Result, user) -> None:
		for name in sorted(user.commands):
			command = user.commands[name]
			user.print(OUTPUT_LEVEL_STANDARD, "console", "%s %s - %s" % (name, command.params, command.help))
