import io

import pytest

from ipgate.console import Console
from ipgate.storage import Storage
from ipgate.whitelist import Whitelist


@pytest.fixture
def storage(tmp_path) -> Storage:
	return Storage(str(tmp_path))

@pytest.fixture
def output() -> io.StringIO:
	return io.StringIO()

@pytest.fixture
def console(output: io.StringIO) -> Console:
	return Console(output)

@pytest.fixture
def whitelist(storage: Storage, console: Console) -> Whitelist:
	wl = Whitelist(storage)
	wl.init(console)
	return wl

def saved_lines(storage: Storage, name: str="whitelist.cfg") -> list:
	with open(storage.path(name), encoding="utf-8") as f:
		return f.read().splitlines()
