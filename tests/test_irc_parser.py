from bancho_irc.irc.parser import LineFramer, parse_prefix_nick, tokenize


def test_framer_keeps_partial_tail_until_completed():
    framer = LineFramer()
    assert framer.feed(b":a!cho@ppy.sh PRIVMSG #osu :hel") == []
    assert framer.pending == ":a!cho@ppy.sh PRIVMSG #osu :hel"
    assert framer.feed(b"lo\r\n:b!cho@ppy.sh JOIN :#osu\n") == [
        ":a!cho@ppy.sh PRIVMSG #osu :hello",
        ":b!cho@ppy.sh JOIN :#osu",
    ]
    assert framer.pending == ""


def test_framer_strips_carriage_returns_anywhere():
    framer = LineFramer()
    assert framer.feed(b"PING :x\r\r\nPING :y\n") == ["PING :x", "PING :y"]


def test_framer_decodes_multibyte_split_across_reads():
    framer = LineFramer()
    data = "héllo ✓\n".encode()
    cut = data.index("✓".encode()) + 1
    assert framer.feed(data[:cut]) == []
    assert framer.feed(data[cut:]) == ["héllo ✓"]


def test_framer_reset_drops_buffer():
    framer = LineFramer()
    framer.feed(b"half a line")
    framer.reset()
    assert framer.pending == ""
    assert framer.feed(b"fresh\n") == ["fresh"]


def test_framer_accepts_str():
    assert LineFramer().feed("one\ntwo\n") == ["one", "two"]


def test_tokenize_and_trailing():
    line = tokenize(":Some_User!cho@ppy.sh PRIVMSG #osu :hello  there :)")
    assert line.verb == "PRIVMSG"
    assert line.nick == "Some_User"
    assert line.param(2) == "#osu"
    assert line.trailing(3) == "hello  there :)"
    assert line.param(10, "none") == "none"


def test_prefixless_line_has_command_first():
    line = tokenize("PING :cho.ppy.sh")
    assert line.tokens[0] == "PING"
    assert line.verb == ":cho.ppy.sh"


def test_parse_prefix_nick():
    assert parse_prefix_nick(":BanchoBot!cho@ppy.sh") == "BanchoBot"
    assert parse_prefix_nick("cho.ppy.sh") == "cho.ppy.sh"
