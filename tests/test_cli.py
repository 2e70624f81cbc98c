import pytest

from ton_disburser.cli import build_parser


def test_run_flags():
    args = build_parser().parse_args(["--config", "c.txt", "run", "--once", "--no-journal"])
    assert args.cmd == "run"
    assert args.once and args.no_journal
    assert args.config == "c.txt"


def test_send_default_receivers():
    args = build_parser().parse_args(["send"])
    assert args.receivers == "receivers.txt"


def test_command_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
