import logging

from ipgate.address import Address, format_address, parse_address
from ipgate.console import CFGFLAG_SERVER, CFGFLAG_STORE, OUTPUT_LEVEL_STANDARD
from ipgate.errors import AddressParseError, PersistenceError
from ipgate.linereader import LineReader

logger = logging.getLogger(__name__)

WHITELIST_FILE = "whitelist.cfg"
ADD_DIRECTIVE = "whitelist_add"
# longest token accepted on a persisted line
MAX_TOKEN_LENGTH = 63

class Whitelist(object):
	"""Set of client addresses admitted by the server.

	The set lives in memory for the accept path and is mirrored to
	``whitelist.cfg`` in the storage area: every mutation rewrites the
	file, ``load`` replays it at startup.
	"""
	storage = None
	console = None
	file_name = WHITELIST_FILE

	def __init__(self, storage, file_name: str=WHITELIST_FILE) -> None:
		self.storage = storage
		self.file_name = file_name
		# keyed by the address value itself: family + host bytes
		self.entries = {}
		self.loading = False

	def init(self, console) -> None:
		self.console = console

		console.register("whitelist_add", "s[ip]", CFGFLAG_SERVER | CFGFLAG_STORE, Whitelist.con_add, self, "Add IP to whitelist")
		console.register("whitelist_remove", "s[ip]", CFGFLAG_SERVER | CFGFLAG_STORE, Whitelist.con_remove, self, "Remove IP from whitelist")
		console.register("whitelist_clear", "", CFGFLAG_SERVER | CFGFLAG_STORE, Whitelist.con_clear, self, "Clear all whitelist entries")
		console.register("whitelist_list", "", CFGFLAG_SERVER, Whitelist.con_list, self, "List all whitelisted IPs")
		console.register("whitelist_welcome", "", CFGFLAG_SERVER, Whitelist.con_welcome, self, "Display welcome message")

		self.load()

	def __len__(self) -> int:
		return len(self.entries)

	def __iter__(self):
		return iter(list(self.entries.values()))

	def __contains__(self, addr: Address) -> bool:
		return self.is_whitelisted(addr)

	@property
	def count(self) -> int:
		return len(self.entries)

	def add(self, addr: Address) -> bool:
		if addr in self.entries:
			return False

		# drop the port, it's not part of the host identity
		entry = Address(addr.family, addr.ip)
		self.entries[entry] = entry
		logger.debug("Added '%s' to whitelist", format_address(addr))
		self.save()
		return True

	def remove(self, addr: Address) -> bool:
		if addr not in self.entries:
			return False

		del self.entries[addr]
		logger.debug("Removed '%s' from whitelist", format_address(addr))
		self.save()
		return True

	def clear(self) -> None:
		self.entries.clear()
		logger.debug("Whitelist cleared")
		self.save()

	def is_whitelisted(self, addr: Address) -> bool:
		return addr in self.entries

	def save(self) -> bool:
		"""Rewrite the persisted file from the current set.

		Failures are logged and reported but never raised: the in-memory
		whitelist stays authoritative for this run.
		"""
		if self.loading:
			return True

		try:
			with self.storage.open_file(self.file_name, "w") as f:
				for addr in self.entries.values():
					f.write("%s %s\n" % (ADD_DIRECTIVE, format_address(addr)))
		except (OSError, ValueError) as e:
			error = PersistenceError(self.file_name, getattr(e, "strerror", None) or str(e))
			logger.error("%s", error)
			if self.console is not None:
				self.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Failed to save whitelist: %s" % error.reason)
			return False

		return True

	def load(self) -> None:
		try:
			f = self.storage.open_file(self.file_name, "r")
		except FileNotFoundError:
			logger.info("No saved whitelist '%s', starting empty", self.file_name)
			return
		except (OSError, ValueError) as e:
			logger.error("Can't read whitelist '%s': %s", self.file_name, e)
			return

		self.loading = True
		try:
			with f:
				for num, line in enumerate(LineReader(f), 1):
					self.load_line(num, line)
		except OSError as e:
			logger.error("Error occurred while reading whitelist '%s': %s", self.file_name, e)
		finally:
			self.loading = False

		logger.info("Loaded %d whitelist entries from '%s'", len(self.entries), self.file_name)

	def load_line(self, num: int, line: str) -> bool:
		tokens = line.split()
		if len(tokens) < 2 or tokens[0] != ADD_DIRECTIVE:
			return False

		if any(len(token) > MAX_TOKEN_LENGTH for token in tokens[:2]):
			logger.warning("Skipping oversized token on line %d of '%s'", num, self.file_name)
			return False

		try:
			addr = parse_address(tokens[1])
		except AddressParseError:
			logger.warning("Skipping invalid address '%s' on line %d of '%s'", tokens[1], num, self.file_name)
			return False

		return self.add(addr)

	def describe(self, addr: Address) -> str:
		return "'%s'" % format_address(addr)

	@staticmethod
	def con_add(result, user) -> None:
		text = result.get_string(0)
		try:
			addr = parse_address(text)
		except AddressParseError:
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Invalid IP address")
			return

		if user.add(addr):
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", user.describe(addr))
		else:
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "IP already in whitelist")

	@staticmethod
	def con_remove(result, user) -> None:
		text = result.get_string(0)
		try:
			addr = parse_address(text)
		except AddressParseError:
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Invalid IP address")
			return

		if user.remove(addr):
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", user.describe(addr))
		else:
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "IP not found in whitelist")

	@staticmethod
	def con_clear(result, user) -> None:
		user.clear()
		user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Whitelist cleared")

	@staticmethod
	def con_list(result, user) -> None:
		if not user.entries:
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Whitelist is empty")
			return

		for index, addr in enumerate(user):
			user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "#%d %s" % (index, user.describe(addr)))

		count = len(user.entries)
		user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "%d %s in whitelist" % (count, "entry" if count == 1 else "entries"))

	@staticmethod
	def con_welcome(result, user) -> None:
		user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", "Request: method=whitelist_welcome, path=")
		user.console.print(OUTPUT_LEVEL_STANDARD, "whitelist", '{"message": "Welcome to the whitelist!"}')
