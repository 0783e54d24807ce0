from __future__ import annotations

import pytest

from mineru_relay.errors import BadRequest, RemoteRejected
from mineru_relay.services.result_poller import ResultPoller

from tests.conftest import RESULTS_OK, MockRemote


@pytest.mark.parametrize("token, batch_id", [(None, "B1"), ("t", None), ("", ""), ("t", "")])
async def test_missing_inputs_are_bad_requests(remote: MockRemote, token, batch_id) -> None:
    with pytest.raises(BadRequest):
        await ResultPoller(remote.client()).poll(token, batch_id)
    assert remote.calls == 0


async def test_poll_returns_envelope_verbatim(remote: MockRemote) -> None:
    envelope = await ResultPoller(remote.client()).poll("t", "B1")

    assert envelope == RESULTS_OK


async def test_poll_is_idempotent(remote: MockRemote) -> None:
    poller = ResultPoller(remote.client())

    first = await poller.poll("t", "B1")
    second = await poller.poll("t", "B1")

    assert first == second
    assert len(remote.requests_to("/extract-results/batch/B1")) == 2


async def test_poll_keeps_extra_envelope_fields(remote: MockRemote) -> None:
    remote.results_response = {"code": 0, "msg": "ok", "trace_id": "abc", "data": {"extract_result": []}}

    envelope = await ResultPoller(remote.client()).poll("t", "B1")
    assert envelope["trace_id"] == "abc"


async def test_poll_surfaces_remote_error(remote: MockRemote) -> None:
    remote.results_response = {"code": -60012, "msg": "batch not found"}

    with pytest.raises(RemoteRejected) as exc_info:
        await ResultPoller(remote.client()).poll("t", "missing")
    assert exc_info.value.message == "batch not found"
