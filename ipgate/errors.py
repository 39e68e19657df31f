class WhitelistError(Exception):
	"""Base class for whitelist failures"""


class AddressParseError(WhitelistError, ValueError):
	def __init__(self, text: str) -> None:
		super(AddressParseError, self).__init__("invalid address '%s'" % text)
		self.text = text


class PersistenceError(WhitelistError, OSError):
	def __init__(self, path: str, reason: str) -> None:
		super(PersistenceError, self).__init__("can't persist whitelist to '%s': %s" % (path, reason))
		self.path = path
		self.reason = reason
