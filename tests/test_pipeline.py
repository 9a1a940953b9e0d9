"""Tests for the send pipeline."""
import pytest

from acpchat.messaging import (
    NO_SESSION_ERROR,
    SEND_FAILED_ERROR,
    AuthenticationMethod,
    ImagePromptContent,
    NoteMetadata,
    PreparedPrompt,
    PromptCapabilities,
    SendMessageOptions,
    SendPipeline,
    SendPromptResult,
    SessionContext,
    SettingsContext,
)
from acpchat.transcript import (
    AutoMentionContext,
    ErrorInfo,
    ImageContent,
    Role,
    StreamingPhase,
    TextContent,
    TextWithContextContent,
)

from conftest import FakePreparer, FakeSubmitter


def make_pipeline(store, preparer=None, submitter=None, session=None, settings=None):
    return SendPipeline(
        store,
        preparer or FakePreparer(),
        submitter or FakeSubmitter(),
        session=session or SessionContext(session_id="sess-1"),
        settings=settings,
    )


class TestPreconditions:
    """Tests for sending without an active session."""

    @pytest.mark.asyncio
    async def test_no_session_sets_error(self, store):
        """Test that no collaborator is called without a session id."""
        preparer = FakePreparer()
        submitter = FakeSubmitter()
        pipeline = SendPipeline(store, preparer, submitter)

        await pipeline.send_message("hello")

        assert store.state.error_info == NO_SESSION_ERROR
        assert store.messages == ()
        assert store.state.is_sending is False
        assert preparer.calls == []
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_empty_session_id_counts_as_missing(self, store):
        """Test that an empty session id is rejected too."""
        pipeline = make_pipeline(store, session=SessionContext(session_id=""))

        await pipeline.send_message("hello")

        assert store.state.error_info == NO_SESSION_ERROR


class TestRoundTrip:
    """Tests for successful and failed round trips."""

    @pytest.mark.asyncio
    async def test_success(self, store):
        """Test the happy path of a user message."""
        submitter = FakeSubmitter()
        pipeline = make_pipeline(store, submitter=submitter)

        await pipeline.send_message("hello")

        assert len(store.messages) == 1
        message = store.messages[0]
        assert message.role == Role.USER
        assert message.content == (TextContent(text="hello"),)
        assert store.state.is_sending is False
        assert store.state.streaming_phase == StreamingPhase.IDLE
        assert store.state.last_user_message is None
        assert store.state.error_info is None
        assert submitter.calls[0].session_id == "sess-1"

    @pytest.mark.asyncio
    async def test_state_while_submission_is_pending(self, store):
        """Test that the message is visible and sending is set before submit returns."""
        seen = []
        submitter = FakeSubmitter(on_submit=lambda request: seen.append(store.state))
        pipeline = make_pipeline(store, submitter=submitter)

        await pipeline.send_message("hello")

        pending = seen[0]
        assert pending.is_sending is True
        assert pending.streaming_phase == StreamingPhase.WAITING
        assert pending.last_user_message == "hello"
        assert pending.messages[-1].role == Role.USER

    @pytest.mark.asyncio
    async def test_structured_failure(self, store):
        """Test that a reported failure is surfaced and the text retained."""
        error = ErrorInfo(title="Rate limited", message="Slow down", suggestion="Retry later")
        pipeline = make_pipeline(
            store, submitter=FakeSubmitter(SendPromptResult(success=False, error=error))
        )

        await pipeline.send_message("hello")

        assert store.state.error_info == error
        assert store.state.last_user_message == "hello"
        assert store.state.is_sending is False
        assert store.state.streaming_phase == StreamingPhase.IDLE
        assert len(store.messages) == 1

    @pytest.mark.asyncio
    async def test_failure_without_error_uses_fallback(self, store):
        """Test the fallback error when the submitter gives no details."""
        pipeline = make_pipeline(
            store, submitter=FakeSubmitter(SendPromptResult(success=False))
        )

        await pipeline.send_message("hello")

        assert store.state.error_info == SEND_FAILED_ERROR

    @pytest.mark.asyncio
    async def test_submit_exception(self, store):
        """Test that a submitter exception becomes an error and never escapes."""
        pipeline = make_pipeline(
            store, submitter=FakeSubmitter(error=ConnectionError("socket closed"))
        )

        await pipeline.send_message("hello")

        error = store.state.error_info
        assert error.title == "Send Message Failed"
        assert error.message == "Failed to send message: socket closed"
        assert store.state.is_sending is False
        assert store.state.last_user_message == "hello"

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_type_name(self, store):
        """Test that an exception with no text is described by its type."""
        pipeline = make_pipeline(store, submitter=FakeSubmitter(error=TimeoutError()))

        await pipeline.send_message("hello")

        assert store.state.error_info.message == "Failed to send message: TimeoutError"

    @pytest.mark.asyncio
    async def test_prepare_exception(self, store):
        """Test that a preparer exception leaves no user message behind."""
        submitter = FakeSubmitter()
        pipeline = make_pipeline(
            store, preparer=FakePreparer(error=OSError("note missing")), submitter=submitter
        )

        await pipeline.send_message("hello")

        assert store.messages == ()
        assert store.state.is_sending is False
        assert store.state.streaming_phase == StreamingPhase.IDLE
        assert store.state.error_info.message == "Failed to send message: note missing"
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_prepare_exception_retains_new_text(self, store):
        """Test that a preparer failure keeps the text just typed for retry."""
        submitter = FakeSubmitter(SendPromptResult(success=False))
        preparer = FakePreparer()
        pipeline = make_pipeline(store, preparer=preparer, submitter=submitter)

        await pipeline.send_message("first")
        preparer.error = OSError("vault locked")
        await pipeline.send_message("second")

        assert store.state.last_user_message == "second"
        assert store.state.error_info.message == "Failed to send message: vault locked"
        assert len(store.messages) == 1

    @pytest.mark.asyncio
    async def test_retry_after_failure_clears_retained_text(self, store):
        """Test that a later success clears the retained text."""
        submitter = FakeSubmitter(SendPromptResult(success=False))
        pipeline = make_pipeline(store, submitter=submitter)

        await pipeline.send_message("hello")
        submitter.result = SendPromptResult(success=True)
        await pipeline.send_message("hello")

        assert store.state.last_user_message is None
        assert len(store.messages) == 2
        assert store.state.error_info is None

    @pytest.mark.asyncio
    async def test_success_clears_earlier_rejection(self, store):
        """Test that a successful send leaves no stale error behind."""
        pipeline = SendPipeline(store, FakePreparer(), FakeSubmitter())

        await pipeline.send_message("too early")
        assert store.state.error_info == NO_SESSION_ERROR

        pipeline.session = SessionContext(session_id="sess-1")
        await pipeline.send_message("hello")

        assert store.state.error_info is None

    @pytest.mark.asyncio
    async def test_send_start_is_one_snapshot(self, store):
        """Test that the user message and the sending flags are committed together."""
        snapshots = []
        store.subscribe(snapshots.append)
        pipeline = make_pipeline(store)

        await pipeline.send_message("hello")

        started, finished = snapshots
        assert started.messages[-1].role == Role.USER
        assert started.is_sending is True
        assert started.streaming_phase == StreamingPhase.WAITING
        assert finished.is_sending is False


class TestPromptContent:
    """Tests for what the collaborators receive and what the user sees."""

    @pytest.mark.asyncio
    async def test_prepare_receives_settings_and_capabilities(self, store):
        """Test the inputs handed to the preparer."""
        preparer = FakePreparer()
        note = NoteMetadata(path="notes/today.md", name="today")
        pipeline = make_pipeline(
            store,
            preparer=preparer,
            session=SessionContext(
                session_id="sess-1",
                prompt_capabilities=PromptCapabilities(embedded_context=True),
            ),
            settings=SettingsContext(
                convert_to_wsl=True, max_note_length=500, max_selection_length=50
            ),
        )

        await pipeline.send_message("hello", SendMessageOptions(
            active_note=note,
            vault_base_path="/vault",
            is_auto_mention_disabled=False,
        ))

        request = preparer.calls[0]
        assert request.message == "hello"
        assert request.active_note == note
        assert request.vault_base_path == "/vault"
        assert request.is_auto_mention_disabled is False
        assert request.convert_to_wsl is True
        assert request.supports_embedded_context is True
        assert request.max_note_length == 500
        assert request.max_selection_length == 50
        assert request.images is None

    @pytest.mark.asyncio
    async def test_missing_capabilities_disable_embedded_context(self, store):
        """Test that embedded context defaults to unsupported."""
        preparer = FakePreparer()
        pipeline = make_pipeline(store, preparer=preparer)

        await pipeline.send_message("hello")

        assert preparer.calls[0].supports_embedded_context is False
        assert preparer.calls[0].convert_to_wsl is False

    @pytest.mark.asyncio
    async def test_submit_receives_prepared_content(self, store):
        """Test that agent content and auth methods are forwarded."""
        prepared = PreparedPrompt(
            agent_content=({"type": "text", "text": "hello\n\n@today"},),
            display_content=({"type": "text", "text": "hello"},),
        )
        auth = (AuthenticationMethod(id="api-key", name="API key"),)
        submitter = FakeSubmitter()
        pipeline = make_pipeline(
            store,
            preparer=FakePreparer(prepared),
            submitter=submitter,
            session=SessionContext(session_id="sess-1", auth_methods=auth),
        )

        await pipeline.send_message("hello")

        request = submitter.calls[0]
        assert request.agent_content == prepared.agent_content
        assert request.display_content == prepared.display_content
        assert request.auth_methods == auth

    @pytest.mark.asyncio
    async def test_images_follow_text_in_order(self, store):
        """Test that attached images are shown after the text."""
        images = (
            ImagePromptContent(data="aW1nMQ==", mime_type="image/png"),
            ImagePromptContent(data="aW1nMg==", mime_type="image/jpeg"),
        )
        preparer = FakePreparer()
        pipeline = make_pipeline(store, preparer=preparer)

        await pipeline.send_message("look", SendMessageOptions(images=images))

        assert store.messages[0].content == (
            TextContent(text="look"),
            ImageContent(data="aW1nMQ==", mime_type="image/png"),
            ImageContent(data="aW1nMg==", mime_type="image/jpeg"),
        )
        assert preparer.calls[0].images == images

    @pytest.mark.asyncio
    async def test_auto_mention_context_is_displayed(self, store):
        """Test that the preparer's auto-mention context decorates the text."""
        context = AutoMentionContext(
            note_name="today",
            note_path="notes/today.md",
            selection={"from_line": 2, "to_line": 4},
        )
        pipeline = make_pipeline(
            store, preparer=FakePreparer(PreparedPrompt(auto_mention_context=context))
        )

        await pipeline.send_message("summarize")

        assert store.messages[0].content == (
            TextWithContextContent(text="summarize", auto_mention_context=context),
        )


class TestConcurrentUpdates:
    """Tests for agent updates arriving while a prompt is in flight."""

    @pytest.mark.asyncio
    async def test_streamed_reply_follows_user_message(self, controller, submitter):
        """Test a full turn of user message, thoughts and reply."""
        seen = []

        def stream_reply(request):
            controller.handle_raw_update({"type": "agent_thought_chunk", "text": "Reading."})
            controller.handle_raw_update({"type": "agent_message_chunk", "text": "Your note "})
            controller.handle_raw_update({"type": "agent_message_chunk", "text": "says hi."})
            seen.append((controller.streaming_phase, controller.is_sending))

        submitter.on_submit = stream_reply

        await controller.send_message("What does my note say?")

        messages = controller.messages
        assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT]
        assert messages[1].content[1] == TextContent(text="Your note says hi.")
        assert controller.streaming_phase == StreamingPhase.IDLE
        assert controller.is_sending is False
        assert seen == [(StreamingPhase.RESPONDING, True)]
