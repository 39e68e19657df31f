import pytest

from ipgate.console import CFGFLAG_SERVER, Console
from ipgate.whitelist import Whitelist


def lines(output) -> list:
	return output.getvalue().splitlines()

def test_add_reports_address(whitelist: Whitelist, console: Console, output):
	assert console.execute("whitelist_add 203.0.113.5:8303")
	assert lines(output) == ["[whitelist]: '203.0.113.5'"]

def test_add_duplicate_and_invalid(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_add 203.0.113.5")
	console.execute("whitelist_add 203.0.113.5")
	console.execute("whitelist_add 203.0.113.500")
	assert lines(output)[1:] == [
		"[whitelist]: IP already in whitelist",
		"[whitelist]: Invalid IP address",
	]
	assert whitelist.count == 1

def test_remove_messages(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_add 2001:db8::1")
	console.execute("whitelist_remove 2001:db8::2")
	console.execute("whitelist_remove bogus")
	console.execute("whitelist_remove [2001:db8::1]:8303")
	assert lines(output)[1:] == [
		"[whitelist]: IP not found in whitelist",
		"[whitelist]: Invalid IP address",
		"[whitelist]: '2001:db8::1'",
	]
	assert whitelist.count == 0

def test_clear_message(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_add 10.0.0.1")
	console.execute("whitelist_clear")
	assert lines(output)[-1] == "[whitelist]: Whitelist cleared"
	assert whitelist.count == 0

def test_list_empty(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_list")
	assert lines(output) == ["[whitelist]: Whitelist is empty"]

def test_list_single_entry(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_add 10.0.0.1")
	output.truncate(0)
	output.seek(0)
	console.execute("whitelist_list")
	assert lines(output) == [
		"[whitelist]: #0 '10.0.0.1'",
		"[whitelist]: 1 entry in whitelist",
	]

def test_list_plural(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_add 10.0.0.1")
	console.execute("whitelist_add ws://10.0.0.1")
	output.truncate(0)
	output.seek(0)
	console.execute("whitelist_list")
	out = lines(output)
	assert len(out) == 3
	assert sorted(out[:2]) == ["[whitelist]: #0 '10.0.0.1'", "[whitelist]: #1 'ws://10.0.0.1'"]
	assert out[2] == "[whitelist]: 2 entries in whitelist"

def test_welcome(whitelist: Whitelist, console: Console, output):
	console.execute("whitelist_welcome")
	assert lines(output) == [
		"[whitelist]: Request: method=whitelist_welcome, path=",
		'[whitelist]: {"message": "Welcome to the whitelist!"}',
	]

def test_missing_argument(whitelist: Whitelist, console: Console, output):
	assert not console.execute("whitelist_add")
	assert "Usage: whitelist_add s[ip]" in output.getvalue()
	assert whitelist.count == 0

def test_unknown_and_empty_commands(console: Console, output):
	assert not console.execute("")
	assert not console.execute("   # just a comment")
	assert not console.execute("sv_shutdown")
	assert lines(output) == ["[console]: No such command: sv_shutdown."]

def test_unbalanced_quotes(console: Console, output):
	assert not console.execute('whitelist_add "10.0.0.1')
	assert lines(output)[0].startswith("[console]: Can't parse command")

def test_help_lists_whitelist_commands(whitelist: Whitelist, console: Console, output):
	console.execute("help")
	out = output.getvalue()
	for name in ("whitelist_add", "whitelist_remove", "whitelist_clear", "whitelist_list", "whitelist_welcome"):
		assert name in out

def test_register_twice_fails(console: Console):
	def noop(result, user):
		pass
	console.register("noop", "", CFGFLAG_SERVER, noop, None, "Nothing")
	with pytest.raises(ValueError):
		console.register("noop", "", CFGFLAG_SERVER, noop, None, "Nothing")

def test_trailing_words_join_into_argument(console: Console):
	seen = []
	def record(result, user):
		seen.append(result.get_string(0))
	console.register("echo", "s[text]", CFGFLAG_SERVER, record, None, "Echo")
	console.execute("echo hello there")
	assert seen == ["hello there"]
