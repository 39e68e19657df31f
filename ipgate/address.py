import enum
import ipaddress
import socket

from ipgate.errors import AddressParseError

WEBSOCKET_PREFIX = "ws://"


class Family(enum.Enum):
	IPV4 = "ipv4"
	WEBSOCKET_IPV4 = "websocket_ipv4"
	IPV6 = "ipv6"


IP_SIZES = {Family.IPV4: 4, Family.WEBSOCKET_IPV4: 4, Family.IPV6: 16}


class Address(object):
	"""Host identity of a network endpoint.

	Only the family tag and the raw host bytes take part in equality and
	hashing, so two endpoints on the same host with different ports are
	the same whitelist key.
	"""
	__slots__ = ("family", "ip", "port")

	def __init__(self, family: Family, ip: bytes, port: int=0) -> None:
		if IP_SIZES.get(family) != len(ip):
			raise ValueError("%s address needs %s bytes, got %d" % (family, IP_SIZES.get(family), len(ip)))
		object.__setattr__(self, "family", family)
		object.__setattr__(self, "ip", bytes(ip))
		object.__setattr__(self, "port", port)

	def __setattr__(self, name, value):
		raise AttributeError("Address is immutable")

	def __eq__(self, other) -> bool:
		if not isinstance(other, Address):
			return NotImplemented
		return addresses_match(self, other)

	def __hash__(self) -> int:
		return hash((self.family, self.ip))

	def __repr__(self) -> str:
		return "Address(%s, '%s')" % (self.family.name, format_address(self))

	def __str__(self) -> str:
		return format_address(self)

	@classmethod
	def from_sockaddr(cls, sock_family: int, sockaddr: tuple) -> "Address":
		"""Build an address from what socket.accept() returned"""
		host, port = sockaddr[0], sockaddr[1]
		if sock_family == socket.AF_INET:
			return cls(Family.IPV4, ipaddress.IPv4Address(host).packed, port)
		if sock_family == socket.AF_INET6:
			ip = ipaddress.IPv6Address(host.split("%", 1)[0])
			# dual stack listeners see IPv4 peers as ::ffff:a.b.c.d
			if ip.ipv4_mapped is not None:
				return cls(Family.IPV4, ip.ipv4_mapped.packed, port)
			return cls(Family.IPV6, ip.packed, port)
		raise ValueError("unsupported socket family %r" % sock_family)


def addresses_match(a: Address, b: Address) -> bool:
	if a.family != b.family:
		return False

	size = IP_SIZES.get(a.family)
	if size is None:
		return False
	return a.ip[:size] == b.ip[:size]


def _split_port(text: str) -> tuple:
	if text.startswith("["):
		host, sep, rest = text[1:].partition("]")
		if not sep or (rest and not rest.startswith(":")):
			raise AddressParseError(text)
		return host, rest[1:] if rest else None, True
	if text.count(":") == 1:
		host, _, port = text.partition(":")
		return host, port, False
	return text, None, False


def parse_address(text: str) -> Address:
	"""Parse an address literal as typed by an operator or stored on disk.

	Accepted forms are ``a.b.c.d``, ``a.b.c.d:port``, bare IPv6, ``[v6]``,
	``[v6]:port`` and ``ws://a.b.c.d[:port]`` for websocket clients.
	"""
	raw = text.strip()
	family = None
	if raw.lower().startswith(WEBSOCKET_PREFIX):
		family = Family.WEBSOCKET_IPV4
		raw = raw[len(WEBSOCKET_PREFIX):]

	host, port_str, bracketed = _split_port(raw)
	port = 0
	if port_str is not None:
		if not (port_str.isascii() and port_str.isdigit()) or int(port_str) > 65535:
			raise AddressParseError(text)
		port = int(port_str)

	try:
		ip = ipaddress.ip_address(host)
	except ValueError:
		raise AddressParseError(text)

	if ip.version == 4:
		if bracketed:
			raise AddressParseError(text)
		return Address(family or Family.IPV4, ip.packed, port)
	if family is Family.WEBSOCKET_IPV4:
		raise AddressParseError(text)
	return Address(Family.IPV6, ip.packed, port)


def format_address(addr: Address) -> str:
	if addr.family is Family.IPV6:
		return ipaddress.IPv6Address(addr.ip).compressed
	text = str(ipaddress.IPv4Address(addr.ip))
	if addr.family is Family.WEBSOCKET_IPV4:
		return WEBSOCKET_PREFIX + text
	return text
