"""Reorganization endpoint client tests."""

from __future__ import annotations

import itertools
import json

import httpx
import pytest

from arranger.notices import NoticeLog
from arranger.organization import FAILURE_MESSAGE, ReorganizationRequestError, ReorganizationService, ReorganizeClient
from arranger.state.models import CollectionState, Document
from arranger.state.workspace import CollectionWorkspace
from arranger.timing import ManualClock

ENDPOINT = "https://reorganize.test/api/reorganize"

PROPOSAL = {
    "status": "success",
    "reorganization": {
        "operations": {
            "foldersToCreate": ["Biology"],
            "documentsToMove": [{"documentId": "d1", "targetFolderId": "new_Biology"}],
            "foldersToDelete": [],
        }
    },
}


def _client(handler) -> ReorganizeClient:
    return ReorganizeClient(ENDPOINT, timeout=5, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_posts_camel_case_payload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PROPOSAL)

    reorganization = await _client(handler).request("c1", "Semester", "by subject")

    assert seen[0].method == "POST"
    assert str(seen[0].url) == ENDPOINT
    assert json.loads(seen[0].content) == {
        "collectionId": "c1",
        "collectionName": "Semester",
        "organizationPrompt": "by subject",
    }
    assert reorganization.operations.folders_to_create == ["Biology"]


@pytest.mark.asyncio
async def test_prompt_is_omitted_when_empty() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=PROPOSAL)

    await _client(handler).request("c1", "Semester")

    assert "organizationPrompt" not in bodies[0]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"status": "success"}),
    ],
)
@pytest.mark.asyncio
async def test_bad_responses_raise_request_error(response: httpx.Response) -> None:
    with pytest.raises(ReorganizationRequestError):
        await _client(lambda request: response).request("c1", "Semester")


@pytest.mark.asyncio
async def test_transport_failure_raises_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ReorganizationRequestError):
        await _client(handler).request("c1", "Semester")


def _state() -> CollectionState:
    return CollectionState(
        collection_id="c1",
        name="Semester",
        documents=[Document(id="d1", collection_id="c1", name="cells.pdf")],
        root_order=["d1"],
    )


@pytest.mark.asyncio
async def test_service_applies_endpoint_proposal() -> None:
    state = _state()
    counter = itertools.count(1)
    workspace = CollectionWorkspace(state, id_factory=lambda: f"f{next(counter)}")
    service = ReorganizationService(
        state,
        workspace,
        NoticeLog(),
        client=_client(lambda request: httpx.Response(200, json=PROPOSAL)),
        clock=ManualClock(),
    )

    report = await service.reorganize()

    assert report.success
    assert state.find_document("d1").folder_id == "f1"
    assert state.mixed_order() == ["f1"]


@pytest.mark.asyncio
async def test_service_reports_endpoint_failure_once() -> None:
    state = _state()
    notices = NoticeLog()
    service = ReorganizationService(
        state,
        CollectionWorkspace(state),
        notices,
        client=_client(lambda request: httpx.Response(503)),
        clock=ManualClock(),
    )

    report = await service.reorganize()

    assert not report.success
    assert report.plan is None
    assert notices.messages("error") == [FAILURE_MESSAGE]
    assert state.find_document("d1").folder_id is None
    assert not service.is_running
