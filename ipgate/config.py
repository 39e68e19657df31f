import os
import configparser

DEFAULTS = {
	"listen": "0.0.0.0",
	"port": "8303",
	"storage_dir": ".",
	"whitelist_file": "whitelist.cfg",
	"banner": "Welcome! You are on the whitelist.",
	"log_output": "console",
	"log_level": "error",
}

class Config(object):
	config = None
	path = None

	def __init__(self, conf_path) -> None:
		if not os.path.isfile(conf_path):
			raise FileNotFoundError("no config file '%s'" % conf_path)
		self.path = conf_path
		self.config = configparser.ConfigParser(interpolation=None)
		self.config.read(conf_path)

	def get(self, key, section="general", fallback=None):
		if fallback is None:
			fallback = DEFAULTS.get(key)
		return self.config.get(section, key, fallback=fallback)

	def get_int(self, key, section="general", fallback=None):
		return int(self.get(key, section, fallback))

	def storage_dir(self) -> str:
		"""Storage directory, relative paths resolved against the config file"""
		path = os.path.expanduser(self.get("storage_dir"))
		if not os.path.isabs(path):
			path = os.path.join(os.path.dirname(os.path.abspath(self.path)), path)
		return os.path.normpath(path)
