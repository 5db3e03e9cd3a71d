"""
Tests for section regeneration, the diff/undo controller and the
generation session, against an in-process fake server.
"""

import asyncio
import json

import httpx
import pytest
import pytest_asyncio

from saveyourgoblin.client import (
    Busy,
    CancellationToken,
    Cancelled,
    ControllerState,
    GenerationFailed,
    GenerationSession,
    GoblinClient,
    NoDataReturned,
    NotAuthenticated,
    PersistenceFailed,
    RegenerateAllFailed,
    RequestValidationError,
    WorkflowError,
)
from saveyourgoblin.engine.mock import mock_character, mock_environment


class FakeServer:
    """Scripted replies keyed by (method, path); records every request."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, reply):
        self.routes[(method, path)] = reply

    async def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"detail": "Not found"})
        result = reply(body)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    def calls(self, method, path):
        return [body for m, p, body in self.requests if m == method and p == path]


def ndjson(section, data, index=None):
    line = {"section": section, "data": data}
    if index is not None:
        line["index"] = index
    return httpx.Response(200, content=(json.dumps(line) + "\n").encode())


def patched(body):
    return httpx.Response(200, json={"data": {"id": "c1", "content_data": body.get("content_data")}})


@pytest.fixture
def server():
    return FakeServer()


@pytest_asyncio.fixture
async def client(server):
    async with GoblinClient(
        base_url="http://goblin.test", token="t", transport=httpx.MockTransport(server.handler)
    ) as client:
        yield client


@pytest.fixture
def character():
    return mock_character("A bard named Lyra")


@pytest.fixture
def session(client, character):
    session = GenerationSession(client)
    session.store.replace(character, "A bard named Lyra", "character")
    session.store.mark_saved("c1")
    return session


class TestRegenerationEngine:
    @pytest.mark.asyncio
    async def test_request_body(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", "Brave", 1))

        result = await session.engine.regenerate_section("traits", section_index=1)

        assert (result.section, result.data, result.index) == ("traits", "Brave", 1)
        sent = server.calls("POST", "/api/generate/regenerate")[0]
        assert sent == {
            "scenario": "A bard named Lyra",
            "contentType": "character",
            "section": "traits",
            "currentContent": character,
            "sectionIndex": 1,
        }

    @pytest.mark.asyncio
    async def test_store_is_untouched(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["New"]))
        await session.engine.regenerate_section("traits")
        assert session.store.content is character

    @pytest.mark.asyncio
    async def test_invalid_section(self, server, session):
        with pytest.raises(GenerationFailed, match="Invalid section"):
            await session.engine.regenerate_section("npcs")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_no_content(self, client):
        session = GenerationSession(client)
        with pytest.raises(GenerationFailed):
            await session.engine.regenerate_section("traits")

    @pytest.mark.asyncio
    async def test_line_without_data(self, server, session):
        server.on(
            "POST",
            "/api/generate/regenerate",
            lambda body: httpx.Response(200, content=b'{"section": "traits"}\n'),
        )
        with pytest.raises(NoDataReturned):
            await session.engine.regenerate_section("traits")

    @pytest.mark.asyncio
    async def test_server_error_message(self, server, session):
        server.on(
            "POST",
            "/api/generate/regenerate",
            lambda body: httpx.Response(500, json={"detail": "Failed to regenerate section: boom"}),
        )
        with pytest.raises(GenerationFailed) as exc_info:
            await session.engine.regenerate_section("traits")
        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Failed to regenerate section: boom"

    @pytest.mark.asyncio
    async def test_unauthenticated(self, server, character):
        async with GoblinClient(
            base_url="http://goblin.test",
            token_provider=lambda: None,
            transport=httpx.MockTransport(server.handler),
        ) as client:
            session = GenerationSession(client)
            session.store.replace(character, "A bard", "character")
            with pytest.raises(NotAuthenticated):
                await session.engine.regenerate_section("traits")
        assert server.requests == []


class TestDiffUndoController:
    @pytest.mark.asyncio
    async def test_preview_then_accept_and_undo(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("background", "Raised by wolves"))
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller

        preview = await controller.request_regeneration("background")
        assert controller.state == ControllerState.PREVIEW_READY
        assert preview.old_value == character["background"]
        assert preview.new_value == "Raised by wolves"
        assert session.store.content is character

        content = await controller.accept()
        assert content["background"] == "Raised by wolves"
        assert controller.state == ControllerState.IDLE
        assert controller.undo_available
        saved = server.calls("PATCH", "/api/content/c1")[0]
        assert saved["change_summary"] == "Regenerated Background"
        assert saved["content_data"]["background"] == "Raised by wolves"

        restored = await controller.undo()
        assert restored == character
        assert session.store.content == character
        assert not controller.undo_available
        assert server.calls("PATCH", "/api/content/c1")[1]["content_data"] == character

    @pytest.mark.asyncio
    async def test_accept_list_element_only(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", "Fearless", 0))
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller

        preview = await controller.request_regeneration("traits", section_index=0)
        assert preview.section_label == "Traits #1"
        assert preview.old_value == character["traits"][0]

        content = await controller.accept()
        assert content["traits"] == ["Fearless"] + character["traits"][1:]

    @pytest.mark.asyncio
    async def test_accept_single_npc(self, server, client):
        environment = {**mock_environment("A tavern"), "npcs": ["A", "B", "C"]}
        session = GenerationSession(client)
        session.store.replace(environment, "A tavern", "environment")
        session.store.mark_saved("c1")
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("npcs", "B2", body["sectionIndex"]))
        server.on("PATCH", "/api/content/c1", patched)

        preview = await session.controller.request_regeneration("npcs", section_index=1)
        assert (preview.old_value, preview.new_value) == ("B", "B2")

        content = await session.controller.accept()
        assert content["npcs"] == ["A", "B2", "C"]
        assert server.calls("PATCH", "/api/content/c1")[0]["content_data"]["npcs"] == ["A", "B2", "C"]

    @pytest.mark.asyncio
    async def test_reject_leaves_content(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["X"]))
        controller = session.controller

        await controller.request_regeneration("traits")
        controller.reject()

        assert controller.state == ControllerState.IDLE
        assert controller.preview is None
        assert session.store.content is character
        assert server.calls("PATCH", "/api/content/c1") == []

    @pytest.mark.asyncio
    async def test_save_failure_keeps_preview(self, server, session, character):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["X"]))
        server.on("PATCH", "/api/content/c1", lambda body: httpx.Response(500, json={"detail": "disk full"}))
        controller = session.controller

        await controller.request_regeneration("traits")
        with pytest.raises(PersistenceFailed, match="disk full"):
            await controller.accept()

        assert controller.state == ControllerState.PREVIEW_READY
        assert controller.preview.new_value == ["X"]
        assert session.store.content is character
        assert not controller.undo_available

        server.on("PATCH", "/api/content/c1", patched)
        content = await controller.accept()
        assert content["traits"] == ["X"]

    @pytest.mark.asyncio
    async def test_accept_unsaved_content(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["X"]))
        session.store.content_id = None
        await session.controller.request_regeneration("traits")
        with pytest.raises(PersistenceFailed):
            await session.controller.accept()

    @pytest.mark.asyncio
    async def test_new_regeneration_clears_undo(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["X"]))
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller

        await controller.request_regeneration("traits")
        await controller.accept()
        assert controller.undo_available

        await controller.request_regeneration("traits")
        assert not controller.undo_available
        with pytest.raises(Busy):
            await controller.undo()

    @pytest.mark.asyncio
    async def test_nothing_to_undo(self, session):
        with pytest.raises(WorkflowError, match="Nothing to undo"):
            await session.controller.undo()

    @pytest.mark.asyncio
    async def test_busy_while_regenerating(self, server, session):
        release = asyncio.Event()

        async def slow(body):
            await release.wait()
            return ndjson("traits", ["X"])

        server.on("POST", "/api/generate/regenerate", slow)
        controller = session.controller

        task = asyncio.create_task(controller.request_regeneration("traits"))
        await asyncio.sleep(0)
        assert controller.state == ControllerState.REGENERATING
        with pytest.raises(Busy):
            await controller.request_regeneration("background")
        with pytest.raises(Busy):
            await controller.accept()

        release.set()
        await task
        assert controller.state == ControllerState.PREVIEW_READY

    @pytest.mark.asyncio
    async def test_cancel_discards_result(self, server, session, character):
        release = asyncio.Event()

        async def slow(body):
            await release.wait()
            return ndjson("traits", ["X"])

        server.on("POST", "/api/generate/regenerate", slow)
        controller = session.controller

        task = asyncio.create_task(controller.request_regeneration("traits"))
        await asyncio.sleep(0)
        controller.cancel()
        release.set()

        with pytest.raises(Cancelled):
            await task
        assert controller.state == ControllerState.IDLE
        assert controller.preview is None
        assert session.store.content is character

    @pytest.mark.asyncio
    async def test_type_switch_discards_result(self, server, session):
        release = asyncio.Event()

        async def slow(body):
            await release.wait()
            return ndjson("traits", ["X"])

        server.on("POST", "/api/generate/regenerate", slow)
        controller = session.controller

        task = asyncio.create_task(controller.request_regeneration("traits"))
        await asyncio.sleep(0)
        session.set_content_type("environment")
        release.set()

        with pytest.raises(Cancelled):
            await task
        assert session.store.content is None
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_type_switch_drops_undo(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson(body["section"], "Raised by wolves"))
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller
        await controller.request_regeneration("background")
        await controller.accept()
        assert controller.undo_available

        session.set_content_type("mission")
        assert not controller.undo_available

    @pytest.mark.asyncio
    async def test_type_switch_drops_pending_preview(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson(body["section"], "Raised by wolves"))
        controller = session.controller
        await controller.request_regeneration("background")

        session.set_content_type("environment")

        assert controller.preview is None
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_regenerate_all_stops_at_failure(self, server, session):
        def reply(body):
            if body["section"] == "skills":
                return httpx.Response(500, json={"detail": "model offline"})
            return ndjson(body["section"], [])

        server.on("POST", "/api/generate/regenerate", reply)
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller

        with pytest.raises(RegenerateAllFailed) as exc_info:
            await controller.regenerate_all()

        assert exc_info.value.section == "skills"
        assert session.store.content["spells"] == []
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_regenerate_all(self, server, client):
        environment = mock_environment("A tavern")
        session = GenerationSession(client)
        session.store.replace(environment, "A tavern", "environment")
        session.store.mark_saved("c1")
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson(body["section"], f"new {body['section']}"))
        server.on("PATCH", "/api/content/c1", patched)

        content = await session.controller.regenerate_all()

        assert content["npcs"] == "new npcs"
        assert content["currentConflict"] == "new currentConflict"
        assert content["name"] == environment["name"]
        assert len(server.calls("PATCH", "/api/content/c1")) == 4


class TestSaveRaces:
    @staticmethod
    def _slow_patch(server, release):
        async def slow(body):
            await release.wait()
            return patched(body)

        server.on("PATCH", "/api/content/c1", slow)

    @staticmethod
    def _replace(session):
        other = mock_environment("A ruined keep")
        session.store.replace(other, "A ruined keep", "environment")
        session.store.mark_saved("c2")
        session.controller.reset()
        return other

    @pytest.mark.asyncio
    async def test_replaced_while_saving(self, server, session):
        release = asyncio.Event()
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("background", "Raised by wolves"))
        self._slow_patch(server, release)
        controller = session.controller
        await controller.request_regeneration("background")

        task = asyncio.create_task(controller.accept())
        await asyncio.sleep(0.05)
        assert controller.state == ControllerState.SAVING
        other = self._replace(session)
        release.set()

        with pytest.raises(Cancelled):
            await task
        assert session.store.content is other
        assert session.store.content_id == "c2"
        assert not controller.undo_available
        assert controller.preview is None
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_replaced_while_undoing(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("background", "Raised by wolves"))
        server.on("PATCH", "/api/content/c1", patched)
        controller = session.controller
        await controller.request_regeneration("background")
        await controller.accept()

        release = asyncio.Event()
        self._slow_patch(server, release)
        task = asyncio.create_task(controller.undo())
        await asyncio.sleep(0.05)
        assert controller.state == ControllerState.UNDOING
        other = self._replace(session)
        release.set()

        with pytest.raises(Cancelled):
            await task
        assert session.store.content is other
        assert not controller.undo_available
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_generate_and_open_refused_while_saving(self, server, session, character):
        release = asyncio.Event()
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("background", "Raised by wolves"))
        self._slow_patch(server, release)
        controller = session.controller
        await controller.request_regeneration("background")

        task = asyncio.create_task(controller.accept())
        await asyncio.sleep(0.05)
        assert controller.persisting
        with pytest.raises(Busy):
            await session.generate("A dwarf smith", "character")
        with pytest.raises(Busy):
            await session.open("c9")
        assert server.calls("POST", "/api/generate") == []
        assert server.calls("GET", "/api/content/c9") == []

        release.set()
        content = await task
        assert content["background"] == "Raised by wolves"
        assert controller.undo_available


class StalledStream(httpx.AsyncByteStream):
    """Yields one chunk, then waits until cancelled; records whether it was closed."""

    def __init__(self, first: bytes):
        self.first = first
        self.closed = False

    async def __aiter__(self):
        yield self.first
        await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_aborts_stalled_stream(self, server, client):
        stream = StalledStream(b'{"type": "character", "content": {"na')
        server.on("POST", "/api/generate", lambda body: httpx.Response(200, stream=stream))
        token = CancellationToken()

        task = asyncio.create_task(client.generate({"scenario": "A bard", "contentType": "character"}, token))
        await asyncio.sleep(0.05)
        token.cancel()

        with pytest.raises(Cancelled):
            await asyncio.wait_for(task, timeout=1)
        assert stream.closed

    @pytest.mark.asyncio
    async def test_cancel_while_waiting_for_headers(self, server, session):
        async def never(body):
            await asyncio.Event().wait()

        server.on("POST", "/api/generate/regenerate", never)
        controller = session.controller

        task = asyncio.create_task(controller.request_regeneration("traits"))
        await asyncio.sleep(0.05)
        controller.cancel()

        with pytest.raises(Cancelled):
            await asyncio.wait_for(task, timeout=1)
        assert controller.state == ControllerState.IDLE

    @pytest.mark.asyncio
    async def test_callback_removed_after_request(self, server, session):
        server.on("POST", "/api/generate/regenerate", lambda body: ndjson("traits", ["Brave"]))
        token = CancellationToken()

        await session.engine.regenerate_section("traits", cancel_token=token)

        assert token._callbacks == []


class TestGenerationSession:
    def _document(self, name="Lyra"):
        content = mock_character(f"A bard named {name}")
        del content["kind"]
        return {"type": "character", "scenario": f"A bard named {name}", "content": content}

    @pytest.mark.asyncio
    async def test_generate_streamed_in_chunks(self, server, client):
        raw = json.dumps(self._document()).encode()

        async def chunks():
            for i in range(0, len(raw), 50):
                yield raw[i:i + 50]

        server.on("POST", "/api/generate", lambda body: httpx.Response(200, content=chunks()))
        session = GenerationSession(client)

        content = await session.generate("  A bard named Lyra ", "character")

        assert content["kind"] == "character"
        assert content["name"] == "Lyra"
        assert session.store.scenario == "A bard named Lyra"
        assert server.calls("POST", "/api/generate")[0]["scenario"] == "A bard named Lyra"

    @pytest.mark.asyncio
    async def test_invalid_input_sends_nothing(self, server, client):
        session = GenerationSession(client)
        with pytest.raises(RequestValidationError):
            await session.generate("", "character")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_server_validation_errors(self, server, client):
        server.on(
            "POST",
            "/api/generate",
            lambda body: httpx.Response(422, json={"detail": {"level": "Input should be less than or equal to 20"}}),
        )
        session = GenerationSession(client)
        with pytest.raises(RequestValidationError) as exc_info:
            await session.generate("A knight", "character")
        assert "level" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_truncated_stream(self, server, client):
        server.on("POST", "/api/generate", lambda body: httpx.Response(200, content=b'{"type": "char'))
        session = GenerationSession(client)
        with pytest.raises(NoDataReturned):
            await session.generate("A bard", "character")

    @pytest.mark.asyncio
    async def test_type_switch_discards_generation(self, server, client):
        release = asyncio.Event()
        document = self._document()

        async def slow(body):
            await release.wait()
            return httpx.Response(200, json=document)

        server.on("POST", "/api/generate", slow)
        session = GenerationSession(client)

        task = asyncio.create_task(session.generate("A bard named Lyra", "character"))
        await asyncio.sleep(0)
        session.set_content_type("mission")
        release.set()

        assert await task is None
        assert session.store.content is None
        assert session.store.content_type == "mission"

    @pytest.mark.asyncio
    async def test_save_and_open(self, server, client):
        server.on("POST", "/api/generate", lambda body: httpx.Response(200, json=self._document()))
        server.on("POST", "/api/content", lambda body: httpx.Response(201, json={"success": True, "id": "c9"}))
        session = GenerationSession(client)
        await session.generate("A bard named Lyra", "character")

        assert await session.save(tags=["npc"]) == "c9"
        assert session.store.content_id == "c9"
        saved = server.calls("POST", "/api/content")[0]
        assert saved["type"] == "character"
        assert saved["tags"] == ["npc"]

        item = {"id": "c9", "type": "character", "scenario_input": "A bard named Lyra", "content_data": saved["contentData"]}
        server.on("GET", "/api/content/c9", lambda body: httpx.Response(200, json={"data": item}))
        other = GenerationSession(client)
        assert await other.open("c9") == saved["contentData"]
        assert other.store.content_id == "c9"
