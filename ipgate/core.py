import socket, select
import logging

from ipgate.address import Address, format_address

logger = logging.getLogger(__name__)

# 2^12
BYTES_BUF_SIZE = 4096

class Core(object):
	"""Accept loop of the server.

	Every incoming connection is checked against the whitelist before
	anything is sent to it. Lines typed on the operator input are handed
	to the console.
	"""
	config = None
	whitelist = None
	console = None
	running = True
	operator_input = None
	pending_input = b''
	discarding = False

	def __init__(self, config, whitelist, console, operator_input=None) -> None:
		self.config = config
		self.whitelist = whitelist
		self.console = console
		self.banner = config.get("banner")
		self.admitted = 0
		self.rejected = 0

		listen = config.get("listen")
		port = config.get_int("port")
		family = socket.AF_INET6 if ":" in listen else socket.AF_INET
		self.server_socket = socket.socket(family, socket.SOCK_STREAM)
		self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		if family == socket.AF_INET6:
			# accept IPv4 peers too, they show up as IPv4-mapped addresses
			self.server_socket.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
		self.server_socket.bind((listen, port))
		self.server_socket.setblocking(False)
		self.server_socket.listen(5)
		logger.info("Listening on '%s' port %d", listen, self.server_socket.getsockname()[1])

		self.epoll = select.epoll()
		self.epoll.register(self.server_socket.fileno(), select.EPOLLIN)

		if operator_input is not None:
			try:
				self.epoll.register(operator_input.fileno(), select.EPOLLIN | select.EPOLLHUP)
				self.operator_input = operator_input
			except PermissionError:
				# regular files can't be polled
				logger.warning("Operator input is not pollable, console disabled")

	def stop(self) -> None:
		self.running = False

	def finalize(self) -> None:
		if self.operator_input is not None:
			self.detach_operator_input()
		if self.server_socket.fileno() > 0:
			self.epoll.unregister(self.server_socket.fileno())
		self.epoll.close()
		self.server_socket.close()
		logger.info("Admitted %d and rejected %d connections", self.admitted, self.rejected)

	def detach_operator_input(self) -> None:
		try:
			self.epoll.unregister(self.operator_input.fileno())
		except (OSError, ValueError) as e:
			logger.debug("Operator input already gone: %s", e)
		self.operator_input = None

	def accept_new_client(self) -> bool:
		"""Accept one pending connection; returns whether it was admitted"""
		try:
			connection, peer = self.server_socket.accept()
		except BlockingIOError:
			return False

		try:
			addr = Address.from_sockaddr(connection.family, peer)
		except ValueError as e:
			logger.warning("Can't identify peer %s: %s", peer, e)
			connection.close()
			self.rejected += 1
			return False

		if not self.whitelist.is_whitelisted(addr):
			logger.info("Rejected connection from '%s' port %d: not in whitelist", format_address(addr), addr.port)
			connection.close()
			self.rejected += 1
			return False

		logger.info("Admitted connection from '%s' port %d", format_address(addr), addr.port)
		self.admitted += 1
		try:
			if self.banner:
				connection.sendall(bytes(self.banner + "\n", 'UTF-8'))
		except OSError as e:
			logger.warning("Failed to greet '%s': %s", format_address(addr), e)
		finally:
			connection.close()
		return True

	def read_operator_input(self) -> None:
		data = b''
		try:
			data = self.operator_input.read1(BYTES_BUF_SIZE)
		except OSError as e:
			logger.warning("Failed to read operator input: %s", e)

		if not data:
			logger.info("Operator input closed")
			self.detach_operator_input()
			if self.pending_input:
				self.console.execute(self.pending_input.decode('UTF-8', 'replace'))
				self.pending_input = b''
			return

		if self.discarding:
			if b'\n' not in data:
				return
			data = data.split(b'\n', 1)[1]
			self.discarding = False

		self.pending_input += data
		*lines, self.pending_input = self.pending_input.split(b'\n')
		for line in lines:
			self.console.execute(line.decode('UTF-8', 'replace'))

		# no command is that long, drop the unterminated rest
		if len(self.pending_input) > BYTES_BUF_SIZE:
			logger.warning("Dropping %d bytes of operator input without a line break", len(self.pending_input))
			self.pending_input = b''
			self.discarding = True

	def poll(self, timeout: float=1) -> None:
		events = self.epoll.poll(timeout=timeout)
		for fileno, event in events:
			if fileno == self.server_socket.fileno():
				self.accept_new_client()
			elif self.operator_input is not None and fileno == self.operator_input.fileno():
				self.read_operator_input()

	def run(self) -> None:
		try:
			while self.running:
				self.poll()
		finally:
			self.finalize()
