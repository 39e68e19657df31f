class LineReader(object):
	"""Yields the lines of an open text stream without line terminators.

	Carriage returns left over from files written on other platforms are
	stripped as well.
	"""
	def __init__(self, stream) -> None:
		self.stream = stream

	def __iter__(self):
		return self

	def __next__(self) -> str:
		line = self.stream.readline()
		if not line:
			raise StopIteration
		return line.rstrip("\r\n")
