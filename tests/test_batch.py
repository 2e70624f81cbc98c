import logging

from ton_disburser.address import Address
from ton_disburser.batch import batch_total, build_batch
from ton_disburser.project_constants import BATCH_SEND_MODE
from ton_disburser.receivers import parse_receivers


def test_one_instruction_per_valid_entry(make_address):
    a, b = make_address(1), make_address(2, bounceable=False)

    batch = build_batch({a: "1.5", b: "0.25"}, "thanks")

    assert [(i.destination.to_friendly(), i.amount) for i in batch] == [
        (a, 1_500_000_000),
        (b, 250_000_000),
    ]
    assert [i.bounce for i in batch] == [True, False]
    assert {i.mode for i in batch} == {BATCH_SEND_MODE}
    assert {i.comment for i in batch} == {"thanks"}
    assert batch_total(batch) == 1_750_000_000


def test_invalid_address_or_amount_dropped(make_address):
    good = make_address(3)
    batch = build_batch(
        {"not-an-address": "1", make_address(4): "-1", good: "2", make_address(5): "1.2.3"},
        "",
    )

    assert len(batch) == 1
    assert batch[0].destination.to_friendly() == good


def test_empty_receivers_give_empty_batch():
    assert build_batch({}, "x") == []


def test_reparsing_same_file_is_stable(tmp_path, make_address):
    path = tmp_path / "batch.txt"
    path.write_text(
        f"{make_address(1)} 1\n{make_address(2)} 2\n{make_address(1)} 3\n",
        encoding="utf-8",
    )

    first = build_batch(parse_receivers(path), "c")
    second = build_batch(parse_receivers(path), "c")

    assert first == second
    # duplicate collapsed, last amount wins
    assert [i.amount for i in first] == [3_000_000_000, 2_000_000_000]


def test_debug_log_uses_raw_address(caplog):
    addr = Address(0, b"\x09" * 32)
    with caplog.at_level(logging.DEBUG, logger="batch"):
        build_batch({addr.to_friendly(): "2"}, "")

    assert f"{addr.to_raw()} -> 2000000000 nano" in caplog.text
