"""Agent loop: alternates model turns and tool dispatch until a final answer."""

from enum import Enum

from harness.clients.base import CompletionClient
from harness.config import Settings
from harness.exceptions import ConversationStateError, MaxTurnsExceededError
from harness.models.conversation import ConversationState
from harness.models.llm import AgentLoopResult, LLMUsage
from harness.models.messages import ToolMessage
from harness.tools.executor import ToolExecutor
from harness.tools.registry import ToolsRegistry
from harness.utils.logging import get_logger
from harness.utils.tokens import estimate_message_tokens

logger = get_logger(__name__)


class LoopState(str, Enum):
    """States of the tool-calling conversation loop."""

    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


class AgentLoop:
    """Drives one conversation between the model and the local tools.

    Each model turn sees the complete history. When the model asks for tools,
    every request in the batch is executed in the order given and answered
    with a tool message before the model is called again.
    """

    def __init__(
        self,
        client: CompletionClient,
        registry: ToolsRegistry,
        model: str,
        executor: ToolExecutor | None = None,
        max_turns: int | None = None,
        context_warning_tokens: int | None = None,
    ):
        """Initialize the agent loop.

        Args:
            client: Completion client for the remote model
            registry: Tools advertised to the model
            model: Model identifier sent with every request
            executor: Tool executor (defaults to one over ``registry``)
            max_turns: Maximum number of model calls; None means no limit
            context_warning_tokens: Warn once the estimated history size passes this
        """
        self.client = client
        self.registry = registry
        self.model = model
        self.executor = executor or ToolExecutor(registry)
        self.max_turns = max_turns
        self.context_warning_tokens = context_warning_tokens

        self.state = LoopState.AWAITING_MODEL
        self.conversation = ConversationState()
        self.turns = 0

    @classmethod
    def from_settings(cls, settings: Settings, client: CompletionClient, registry: ToolsRegistry) -> "AgentLoop":
        """Build an agent loop configured from process settings."""
        return cls(
            client=client,
            registry=registry,
            model=settings.model,
            executor=ToolExecutor(registry, argument_errors=settings.tool_argument_errors),
            max_turns=settings.max_turns,
            context_warning_tokens=settings.context_warning_tokens,
        )

    async def run(self, user_prompt: str, system_prompt: str | None = None) -> AgentLoopResult:
        """Run the conversation to completion.

        Raises:
            CompletionError: If the completion client fails
            ToolArgumentError: If the model sends malformed tool arguments
            MaxTurnsExceededError: If the model is still calling tools at the turn limit
        """
        self.conversation.seed(system_prompt, user_prompt)
        self.state = LoopState.AWAITING_MODEL
        declarations = self.registry.declarations()
        usage = LLMUsage()

        logger.info(f"Starting agent loop with {len(declarations)} tools, max_turns: {self.max_turns}")

        while self.state is not LoopState.DONE:
            if self.state is LoopState.AWAITING_MODEL:
                if self.max_turns is not None and self.turns >= self.max_turns:
                    logger.warning(f"Agent loop reached max turns ({self.max_turns})")
                    raise MaxTurnsExceededError(self.max_turns)

                self.turns += 1
                self._check_context_size()
                logger.debug(f"Agent loop turn {self.turns}, {len(self.conversation)} messages")

                response = await self.client.complete(self.conversation.snapshot(), declarations, self.model)
                usage.add(response.usage)
                self.conversation.append(response.message)

                if response.message.requests_tools:
                    logger.info(f"Model requested {len(response.message.tool_calls)} tool call(s)")
                    self.state = LoopState.DISPATCHING_TOOLS
                else:
                    self.state = LoopState.DONE

            elif self.state is LoopState.DISPATCHING_TOOLS:
                await self._dispatch_tools()
                self.state = LoopState.AWAITING_MODEL

        final = self.conversation.last_assistant()
        logger.info(f"Agent loop completed in {self.turns} turns")
        return AgentLoopResult(
            content=final.content if final else None,
            messages=self.conversation.snapshot(),
            turns=self.turns,
            usage=usage,
        )

    async def _dispatch_tools(self) -> None:
        """Run every tool call of the latest assistant message, in order."""
        message = self.conversation.last_assistant()
        if message is None:
            raise ConversationStateError("No assistant message to dispatch tool calls for")

        for request in message.tool_calls:
            logger.info(f"Dispatching tool {request.tool_name} (call {request.id})")
            result = await self.executor.run(request)
            self.conversation.append(ToolMessage(content=result, tool_call_id=request.id))

    def _check_context_size(self) -> None:
        if self.context_warning_tokens is None:
            return
        estimated = estimate_message_tokens(self.conversation.snapshot())
        if estimated > self.context_warning_tokens:
            logger.warning(
                f"Conversation history is ~{estimated} tokens, above the {self.context_warning_tokens} token warning "
                "threshold; history is never truncated"
            )
