"""Pytest configuration and shared fixtures."""
import itertools
from datetime import datetime

import pytest

from acpchat.chat import create_chat_controller
from acpchat.messaging import (
    PreparedPrompt,
    PreparePromptInput,
    PromptPreparer,
    PromptSubmitter,
    SendPromptInput,
    SendPromptResult,
    SessionContext,
)
from acpchat.transcript import TranscriptStore
from acpchat.updates import UpdateDispatcher

FIXED_TIME = datetime(2025, 1, 15, 12, 30, 0)


class FakePreparer(PromptPreparer):
    """Prompt preparer returning a canned prompt and recording its inputs."""

    def __init__(self, prepared: PreparedPrompt | None = None, error: Exception | None = None):
        self.prepared = prepared
        self.error = error
        self.calls: list[PreparePromptInput] = []

    async def prepare(self, request: PreparePromptInput) -> PreparedPrompt:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if self.prepared is not None:
            return self.prepared
        content = ({"type": "text", "text": request.message},)
        return PreparedPrompt(agent_content=content, display_content=content)


class FakeSubmitter(PromptSubmitter):
    """Prompt submitter returning a canned result and recording its inputs.

    ``on_submit`` runs before the result is returned, which lets tests
    inject session updates while the round trip is pending.
    """

    def __init__(
        self,
        result: SendPromptResult | None = None,
        error: Exception | None = None,
        on_submit=None
    ):
        self.result = result or SendPromptResult(success=True)
        self.error = error
        self.on_submit = on_submit
        self.calls: list[SendPromptInput] = []

    async def submit(self, request: SendPromptInput) -> SendPromptResult:
        self.calls.append(request)
        if self.on_submit is not None:
            self.on_submit(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def id_factory():
    """Return a deterministic message id generator."""
    counter = itertools.count(1)
    return lambda: f"msg-{next(counter)}"


@pytest.fixture
def clock():
    """Return a clock frozen at FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def store(id_factory, clock):
    """Create an empty transcript store."""
    return TranscriptStore(id_factory=id_factory, clock=clock)


@pytest.fixture
def dispatcher(store):
    """Create a dispatcher bound to the store fixture."""
    return UpdateDispatcher(store)


@pytest.fixture
def preparer():
    return FakePreparer()


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def controller(preparer, submitter, id_factory, clock):
    """Create a chat controller with an active session and fake collaborators."""
    return create_chat_controller(
        preparer,
        submitter,
        SessionContext(session_id="sess-1"),
        id_factory=id_factory,
        clock=clock,
    )
