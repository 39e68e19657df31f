import os
import logging

logger = logging.getLogger(__name__)

class Storage(object):
	"""Named text files inside the server's writable save directory"""
	save_dir = None

	def __init__(self, save_dir: str) -> None:
		self.save_dir = os.path.abspath(save_dir)

	def path(self, name: str) -> str:
		if os.path.basename(name) != name or name in ("", ".", ".."):
			raise ValueError("'%s' is not a plain file name" % name)
		return os.path.join(self.save_dir, name)

	def open_file(self, name: str, mode: str="r"):
		"""Open ``name`` for reading ("r") or truncating write ("w").

		Raises FileNotFoundError when reading a file that does not exist
		and OSError for anything else the filesystem refuses.
		"""
		if mode not in ("r", "w"):
			raise ValueError("unsupported mode '%s'" % mode)
		path = self.path(name)
		if mode == "w" and not os.path.isdir(self.save_dir):
			logger.info("Creating storage directory '%s' ...", self.save_dir)
			os.makedirs(self.save_dir, exist_ok=True)
		if mode == "w":
			return open(path, mode, encoding="utf-8", newline="\n")
		# undecodable bytes only spoil their own line
		return open(path, mode, encoding="utf-8", errors="replace")
