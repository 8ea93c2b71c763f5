from __future__ import annotations

import logging
from typing import List

import pytest

from token_ledger.errors import InsufficientBalance
from token_ledger.events import EVT_APPROVAL, EVT_TRANSFER, Event, EventLog
from token_ledger.ledger import TokenLedger


def test_emit_assigns_sequence_and_normalises_bytes():
    log = EventLog()
    e0 = log.emit(EVT_TRANSFER, {"from": bytearray(b"a"), "to": b"b", "value": 3})
    e1 = log.emit(EVT_APPROVAL, {"owner": b"a", "spender": b"c", "value": 0})
    assert (e0.seq, e1.seq) == (0, 1)
    assert isinstance(e0.args["from"], bytes)
    assert len(log) == 2
    assert [e.name for e in log] == [EVT_TRANSFER, EVT_APPROVAL]
    assert log.by_name(EVT_APPROVAL) == [e1]


@pytest.mark.parametrize(
    "name,args",
    [
        ("", {"x": 1}),
        ("X" * 65, {"x": 1}),
        ("Transfer", {"1bad": 1}),
        ("Transfer", {"x": -1}),
        ("Transfer", {"x": 2**256}),
        ("Transfer", {"x": True}),
        ("Transfer", {"x": "str"}),
    ],
)
def test_emit_rejects_malformed(name, args):
    log = EventLog()
    with pytest.raises(ValueError):
        log.emit(name, args)
    assert len(log) == 0


def test_to_dict_hexes_bytes():
    ev = Event(seq=4, name=EVT_TRANSFER, args={"from": b"\x01\x02", "value": 9})
    assert ev.to_dict() == {"seq": 4, "name": "Transfer", "args": {"from": "0x0102", "value": 9}}


def test_subscribers_receive_in_order_and_can_filter():
    log = EventLog()
    seen: List[Event] = []
    approvals: List[Event] = []
    log.subscribe(seen.append)
    unsubscribe = log.subscribe(approvals.append, name=EVT_APPROVAL)

    log.emit(EVT_TRANSFER, {"value": 1})
    log.emit(EVT_APPROVAL, {"value": 2})
    unsubscribe()
    unsubscribe()  # second call is harmless
    log.emit(EVT_APPROVAL, {"value": 3})

    assert [e.args["value"] for e in seen] == [1, 2, 3]
    assert [e.args["value"] for e in approvals] == [2]


def test_failing_subscriber_is_isolated(caplog: pytest.LogCaptureFixture):
    log = EventLog()
    seen: List[int] = []

    def bad(ev: Event) -> None:
        raise RuntimeError("subscriber bug")

    log.subscribe(bad)
    log.subscribe(lambda ev: seen.append(ev.seq))
    with caplog.at_level(logging.ERROR, logger="token_ledger.events"):
        ev = log.emit(EVT_TRANSFER, {"value": 1})
    assert ev.seq == 0
    assert seen == [0]
    assert "subscriber" in caplog.text


def test_ledger_survives_failing_subscriber(ledger: TokenLedger, accounts):
    ledger.events.subscribe(lambda ev: 1 / 0)
    assert ledger.transfer(accounts["O"], accounts["R"], 5)
    assert ledger.balance_of(accounts["R"]) == 5


def test_ledger_notifications_follow_operation_order(ledger: TokenLedger, accounts):
    O, R, S = accounts["O"], accounts["R"], accounts["S"]
    seen: List[str] = []
    ledger.events.subscribe(lambda ev: seen.append(ev.name))
    ledger.approve(O, S, 5)
    ledger.transfer(O, R, 1)
    ledger.transfer_from(S, O, R, 5)
    assert seen == [EVT_APPROVAL, EVT_TRANSFER, EVT_TRANSFER]


def test_rejected_operation_notifies_nobody(ledger: TokenLedger, accounts):
    seen: List[Event] = []
    ledger.events.subscribe(seen.append)
    with pytest.raises(InsufficientBalance):
        ledger.transfer(accounts["R"], accounts["O"], 1)
    assert seen == []


def test_for_receipt_encoding():
    log = EventLog()
    log.emit(EVT_TRANSFER, {"from": b"\xaa", "value": 7})
    (ce,) = log.for_receipt()
    assert ce.name == "0x" + b"Transfer".hex()
    assert list(ce.args) == [
        {"k": "from", "t": "b", "v": "0xaa"},
        {"k": "value", "t": "i", "v": 7},
    ]


def test_load_dicts_restores_without_notifying():
    src = EventLog()
    src.emit(EVT_TRANSFER, {"from": b"\x00", "to": b"O", "value": 10})
    src.emit(EVT_APPROVAL, {"owner": b"O", "spender": b"S", "value": 4})

    dst = EventLog()
    seen: List[Event] = []
    dst.subscribe(seen.append)
    dst.load_dicts(src.to_dicts())
    assert dst.events == src.events
    assert seen == []

    dst.clear()
    assert len(dst) == 0


def test_subscribers_cannot_rewrite_the_log(ledger: TokenLedger, accounts):
    def tamper(ev: Event) -> None:
        ev.args["value"] = 0  # type: ignore[index]

    ledger.events.subscribe(tamper)
    ledger.transfer(accounts["O"], accounts["R"], 5)
    assert ledger.events.events[-1].args["value"] == 5
    with pytest.raises(TypeError):
        ledger.events.events[-1].args["value"] = 1  # type: ignore[index]
