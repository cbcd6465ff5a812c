import json

import pytest

from flowwallet.status import Status, status_from_text

CASES = [
    ('"Unknown"', Status.UNKNOWN, '"somethingunknown"'),
    ('"Init"', Status.INIT, '"init"'),
    ('"Accepted"', Status.ACCEPTED, '"accepted"'),
    ('"NoAvailableWorkers"', Status.NO_AVAILABLE_WORKERS, '"noavailableworkers"'),
    ('"QueueFull"', Status.QUEUE_FULL, '"queuefull"'),
    ('"Error"', Status.ERROR, '"error"'),
    ('"Complete"', Status.COMPLETE, '"complete"'),
]


@pytest.mark.parametrize("name,status,encoded", CASES)
def test_marshal(name, status, encoded):
    parsed = status_from_text(json.loads(encoded))
    assert parsed.to_json() == name


@pytest.mark.parametrize("name,status,encoded", CASES)
def test_unmarshal(name, status, encoded):
    assert status_from_text(json.loads(encoded)) is status


@pytest.mark.parametrize("name,status,encoded", CASES)
def test_round_trip(name, status, encoded):
    assert status_from_text(json.loads(status.to_json())) is status


def test_parsing_ignores_case():
    assert status_from_text("QUEUEFULL") is Status.QUEUE_FULL
    assert status_from_text("") is Status.UNKNOWN


def test_str_is_label():
    assert str(status_from_text("noavailableworkers")) == "NoAvailableWorkers"