from ..messaging.base import PromptPreparer, PromptSubmitter
from ..messaging.models import SessionContext, SettingsContext
from ..messaging.pipeline import SendPipeline
from ..transcript.store import Clock, IdFactory, TranscriptStore
from ..updates.dispatcher import UpdateDispatcher
from .controller import ChatController


def create_chat_controller(
    preparer: PromptPreparer,
    submitter: PromptSubmitter,
    session: SessionContext | None = None,
    settings: SettingsContext | None = None,
    *,
    id_factory: IdFactory | None = None,
    clock: Clock | None = None
) -> ChatController:
    """Create a chat controller.

    This factory function hides how the store, dispatcher and send pipeline
    are wired together; all three share one transcript store.

    Args:
        preparer: Prompt preparation collaborator
        submitter: Prompt submission collaborator
        session: Session context (may be replaced later via ``set_session``)
        settings: Prompt preparation settings
        id_factory: Message identifier generator (default: random UUID)
        clock: Time source for message timestamps (default: ``datetime.now``)

    Returns:
        Initialized ChatController

    Examples:
        >>> controller = create_chat_controller(
        ...     preparer,
        ...     submitter,
        ...     SessionContext(session_id="sess-1"),
        ... )
        >>> controller.handle_raw_update({"type": "agent_message_chunk", "text": "Hi"})
    """
    store = TranscriptStore(id_factory=id_factory, clock=clock)
    return ChatController(
        store=store,
        dispatcher=UpdateDispatcher(store),
        pipeline=SendPipeline(
            store,
            preparer,
            submitter,
            session=session,
            settings=settings,
        ),
    )
