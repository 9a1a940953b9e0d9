"""Send pipeline.

Runs the outbound round trip for a user message: precondition check,
prompt preparation, optimistic transcript append, submission, and folding
the outcome back into the store.
"""

import structlog

from ..transcript.models import (
    ContentBlock,
    ErrorInfo,
    ImageContent,
    Role,
    TextContent,
    TextWithContextContent,
)
from ..transcript.store import TranscriptStore
from .base import PromptPreparer, PromptSubmitter
from .models import (
    PreparedPrompt,
    PreparePromptInput,
    SendMessageOptions,
    SendPromptInput,
    SessionContext,
    SettingsContext,
)

logger = structlog.get_logger(__name__)

NO_SESSION_ERROR = ErrorInfo(
    title="Cannot Send Message",
    message="No active session. Please wait for connection.",
)
SEND_FAILED_ERROR = ErrorInfo(
    title="Send Message Failed",
    message="Failed to send message",
)


def build_user_content(
    text: str,
    prepared: PreparedPrompt,
    options: SendMessageOptions
) -> list[ContentBlock]:
    """Build the content blocks of the user-facing message.

    The text block carries the auto-mention context when one was produced;
    attached images follow it in input order.
    """
    content: list[ContentBlock] = []
    if prepared.auto_mention_context is not None:
        content.append(TextWithContextContent(
            text=text,
            auto_mention_context=prepared.auto_mention_context,
        ))
    else:
        content.append(TextContent(text=text))

    for image in options.images:
        content.append(ImageContent(data=image.data, mime_type=image.mime_type))
    return content


class SendPipeline:
    """Mediates outbound message submission.

    Side effects are confined to the transcript store: the user message,
    the sending flag, the streaming phase, the retained user text and the
    error state.
    """

    def __init__(
        self,
        store: TranscriptStore,
        preparer: PromptPreparer,
        submitter: PromptSubmitter,
        session: SessionContext | None = None,
        settings: SettingsContext | None = None
    ) -> None:
        self.store = store
        self.preparer = preparer
        self.submitter = submitter
        self.session = session or SessionContext()
        self.settings = settings or SettingsContext()

    async def send_message(
        self,
        text: str,
        options: SendMessageOptions | None = None
    ) -> None:
        """Send a user message to the agent.

        Never raises for collaborator failures; they are recorded as the
        store's error info and the raw text is kept for retry.

        Args:
            text: Raw message text typed by the user
            options: Active note, vault path, auto-mention toggle and images
        """
        options = options or SendMessageOptions()
        session = self.session

        if not session.session_id:
            logger.warning("send_message_rejected", reason="no_active_session")
            self.store.set_error(NO_SESSION_ERROR)
            return

        log = logger.bind(session_id=session.session_id)
        capabilities = session.prompt_capabilities

        try:
            prepared = await self.preparer.prepare(PreparePromptInput(
                message=text,
                images=options.images or None,
                active_note=options.active_note,
                vault_base_path=options.vault_base_path,
                is_auto_mention_disabled=options.is_auto_mention_disabled,
                convert_to_wsl=self.settings.convert_to_wsl,
                supports_embedded_context=(
                    capabilities.embedded_context if capabilities else False
                ),
                max_note_length=self.settings.max_note_length,
                max_selection_length=self.settings.max_selection_length,
            ))
        except Exception as e:
            self._fail_unexpectedly(log, "prepare", e, text)
            return

        self.store.begin_send(text, self.store.new_message(
            Role.USER, build_user_content(text, prepared, options)
        ))
        log.info("send_message_started", images=len(options.images))

        try:
            result = await self.submitter.submit(SendPromptInput(
                session_id=session.session_id,
                agent_content=prepared.agent_content,
                display_content=prepared.display_content,
                auth_methods=session.auth_methods,
            ))
        except Exception as e:
            self._fail_unexpectedly(log, "submit", e, text)
            return

        if result.success:
            log.info("send_message_completed")
            self.store.finish_send()
        else:
            error = result.error or SEND_FAILED_ERROR
            log.warning("send_message_failed", title=error.title, error=error.message)
            self.store.finish_send(error)

    def _fail_unexpectedly(self, log, stage: str, error: Exception, text: str) -> None:
        log.error("send_message_exception", stage=stage, error=str(error), exc_info=True)
        description = str(error) or type(error).__name__
        self.store.finish_send(ErrorInfo(
            title=SEND_FAILED_ERROR.title,
            message=f"{SEND_FAILED_ERROR.message}: {description}",
        ), text=text)
