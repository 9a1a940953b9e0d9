from abc import ABC, abstractmethod

from .models import PreparedPrompt, PreparePromptInput, SendPromptInput, SendPromptResult


class PromptPreparer(ABC):
    """Abstract base class for prompt preparation.

    This module hides how a raw user message becomes agent content.
    Implementations are responsible for:
    - Resolving note mentions and reading note content
    - Attaching the active note as auto-mention context
    - Converting paths for the agent's platform
    - Truncating notes and selections to the configured limits
    """

    @abstractmethod
    async def prepare(self, request: PreparePromptInput) -> PreparedPrompt:
        """Assemble the outbound prompt.

        Args:
            request: Raw message and the context needed to expand it

        Returns:
            PreparedPrompt with agent content, display content and the
            optional auto-mention context

        Raises:
            Exception: Implementation-specific errors (vault access, ...)
        """
        pass


class PromptSubmitter(ABC):
    """Abstract base class for prompt submission.

    This module hides the transport that carries prompts to the agent,
    including authentication retries and error classification.
    """

    @abstractmethod
    async def submit(self, request: SendPromptInput) -> SendPromptResult:
        """Send a prepared prompt to the agent.

        Resolves once the agent has finished its turn.

        Args:
            request: Session id, prepared content and auth methods

        Returns:
            SendPromptResult describing success or a structured failure

        Raises:
            Exception: Unexpected transport errors
        """
        pass
