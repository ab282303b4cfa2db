import asyncio
from ipaddress import IPv6Address

import pytest

from fakes import FakeEcho
from pingline import main as cli
from pingline.formatters import OutputFormat


def parse(*argv):
    return cli.build_argparser().parse_args(list(argv))


def test_defaults():
    args = parse("8.8.8.8")
    assert str(args.server) == "8.8.8.8"
    assert args.interval == 100
    assert args.format is OutputFormat.HUMAN
    assert args.count is None
    assert args.backend == "icmplib"


def test_options():
    args = parse("::1", "-i", "250", "-f", "json", "-c", "3", "-b", "system")
    assert isinstance(args.server, IPv6Address)
    assert args.interval == 250
    assert args.format is OutputFormat.JSON
    assert args.count == 3
    assert args.backend == "system"


@pytest.mark.parametrize(
    "argv",
    [
        ["not-an-ip"],
        ["example.com"],
        ["1.1.1.1", "-i", "0"],
        ["1.1.1.1", "-i", "-5"],
        ["1.1.1.1", "-i", "fast"],
        ["1.1.1.1", "-f", "xml"],
        ["1.1.1.1", "-W", "0"],
        [],
    ],
)
def test_startup_errors_exit(argv):
    with pytest.raises(SystemExit) as exc:
        parse(*argv)
    assert exc.value.code == 2


def test_main_async_runs_count_ticks(monkeypatch, capsys):
    monkeypatch.setattr(cli, "make_echo", lambda *a, **kw: FakeEcho([1_000_000] * 3))
    args = parse("127.0.0.1", "-i", "1", "-c", "3", "-f", "csv")
    assert asyncio.run(cli.main_async(args)) == 3
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert all(line.endswith(",1.0") for line in lines)


def test_socket_mode_flags():
    assert parse("1.1.1.1").privileged is None
    assert parse("1.1.1.1", "--privileged").privileged is True
    assert parse("1.1.1.1", "--unprivileged").privileged is False
    with pytest.raises(SystemExit):
        parse("1.1.1.1", "--privileged", "--unprivileged")
