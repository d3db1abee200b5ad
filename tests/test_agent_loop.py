"""Tests for the tool-calling agent loop."""

from unittest.mock import patch

import pytest

from harness.config import Settings
from harness.exceptions import CompletionError, ConversationStateError, MaxTurnsExceededError, ToolArgumentError
from harness.models.messages import AssistantMessage, ToolCallRequest, ToolMessage
from harness.services.agent import AgentLoop, LoopState
from tests.conftest import ScriptedClient, reply, tool_call


def make_loop(client, registry, **kwargs) -> AgentLoop:
    return AgentLoop(client=client, registry=registry, model="test-model", **kwargs)


def assert_tool_results_correlate(messages) -> None:
    """Every tool message answers a request of the closest preceding assistant message."""
    open_ids: set[str] = set()
    for message in messages:
        if isinstance(message, AssistantMessage):
            open_ids = {call.id for call in message.tool_calls}
        elif isinstance(message, ToolMessage):
            assert message.tool_call_id in open_ids
            open_ids.discard(message.tool_call_id)
    assert not open_ids


class TestAgentLoopScenarios:
    """End-to-end scenarios with a scripted model."""

    @pytest.mark.asyncio
    async def test_direct_answer(self, registry):
        """Test a plain answer finishes after exactly one model call."""
        client = ScriptedClient(reply("4"))
        loop = make_loop(client, registry)

        result = await loop.run("What is 2+2?")

        assert result.content == "4"
        assert result.turns == 1
        assert client.calls == 1
        assert loop.state is LoopState.DONE

    @pytest.mark.asyncio
    async def test_read_file_then_answer(self, registry, tmp_path):
        """Test a Read result is fed to the second model call."""
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")
        client = ScriptedClient(
            reply(None, tool_call("call_1", "Read", file_path=str(notes))),
            reply("The file says hello"),
        )

        result = await make_loop(client, registry).run("Read notes.txt")

        assert client.calls == 2
        second_request = client.requests[1][0]
        assert second_request[-1] == ToolMessage(content="hello", tool_call_id="call_1")
        assert result.content == "The file says hello"

    @pytest.mark.asyncio
    async def test_missing_file_does_not_abort(self, registry, tmp_path):
        """Test read errors are returned to the model and the loop continues."""
        client = ScriptedClient(
            reply(None, tool_call("call_1", "Read", file_path=str(tmp_path / "missing.txt"))),
            reply("That file does not exist."),
        )

        result = await make_loop(client, registry).run("Read missing.txt")

        tool_message = client.requests[1][0][-1]
        assert tool_message.content.startswith("Error reading file: ")
        assert client.calls == 2
        assert result.content == "That file does not exist."

    @pytest.mark.asyncio
    async def test_unknown_tool_does_not_abort(self, registry):
        """Test unknown tools are reported to the model and the loop continues."""
        client = ScriptedClient(
            reply(None, tool_call("call_1", "Delete", file_path="notes.txt")),
            reply("I cannot delete files."),
        )

        result = await make_loop(client, registry).run("Delete notes.txt")

        assert client.requests[1][0][-1] == ToolMessage(content="Unknown tool: Delete", tool_call_id="call_1")
        assert result.content == "I cannot delete files."

    @pytest.mark.asyncio
    async def test_write_then_read_across_turns(self, registry, tmp_path):
        """Test a file written in one turn can be read back in the next."""
        path = str(tmp_path / "draft.txt")
        client = ScriptedClient(
            reply(None, tool_call("w", "Write", file_path=path, content="draft body")),
            reply(None, tool_call("r", "Read", file_path=path)),
            reply("Saved and verified."),
        )

        result = await make_loop(client, registry).run("Save a draft")

        tool_messages = [m for m in result.messages if isinstance(m, ToolMessage)]
        assert [m.content for m in tool_messages] == ["File written to successfully.", "draft body"]
        assert result.turns == 3


class TestAgentLoopProtocol:
    """Tests for ordering, correlation and history invariants."""

    @pytest.mark.asyncio
    async def test_batch_results_in_request_order(self, registry, tmp_path):
        """Test N tool calls yield N tool messages in the same order."""
        for name in ["a", "b", "c"]:
            (tmp_path / f"{name}.txt").write_text(name.upper())
        calls = [tool_call(f"call_{n}", "Read", file_path=str(tmp_path / f"{n}.txt")) for n in ["c", "a", "b"]]
        client = ScriptedClient(reply(None, *calls), reply("done"))

        result = await make_loop(client, registry).run("Read everything")

        tool_messages = [m for m in result.messages if isinstance(m, ToolMessage)]
        assert [m.tool_call_id for m in tool_messages] == ["call_c", "call_a", "call_b"]
        assert [m.content for m in tool_messages] == ["C", "A", "B"]
        assert_tool_results_correlate(result.messages)

    @pytest.mark.asyncio
    async def test_model_sees_complete_history_each_turn(self, registry, tmp_path):
        """Test every request carries the whole conversation so far."""
        (tmp_path / "x.txt").write_text("x")
        client = ScriptedClient(
            reply("Let me look.", tool_call("call_1", "Read", file_path=str(tmp_path / "x.txt"))),
            reply(None, tool_call("call_2", "Delete")),
            reply("finished"),
        )

        result = await make_loop(client, registry).run("Go", system_prompt="Be brief.")

        lengths = [len(messages) for messages, _, _ in client.requests]
        assert lengths == [2, 4, 6]
        assert [m.role for m in result.messages] == [
            "system",
            "user",
            "assistant",
            "tool",
            "assistant",
            "tool",
            "assistant",
        ]
        for earlier, later in zip(client.requests, client.requests[1:]):
            assert later[0][: len(earlier[0])] == earlier[0]
        assert_tool_results_correlate(result.messages)

    @pytest.mark.asyncio
    async def test_declarations_and_model_sent_every_turn(self, registry):
        """Test every request advertises all tools and the model id."""
        client = ScriptedClient(reply(None, tool_call("call_1", "Delete")), reply("ok"))

        await make_loop(client, registry).run("Go")

        for _, tools, model in client.requests:
            assert [t.name for t in tools] == ["Read", "Write"]
            assert model == "test-model"

    @pytest.mark.asyncio
    async def test_final_message_without_content(self, registry):
        """Test an empty final answer yields no content."""
        client = ScriptedClient(reply(None))

        result = await make_loop(client, registry).run("Say nothing")

        assert result.content is None
        assert client.calls == 1

    @pytest.mark.asyncio
    async def test_usage_accumulates_across_turns(self, registry):
        """Test token usage sums over all model calls."""
        client = ScriptedClient(reply(None, tool_call("call_1", "Delete")), reply("ok"))

        result = await make_loop(client, registry).run("Go")

        assert result.usage.input_tokens == 20
        assert result.usage.output_tokens == 10
        assert result.usage.total_tokens == 30


class TestAgentLoopFailures:
    """Tests for fatal and recoverable failures."""

    @pytest.mark.asyncio
    async def test_completion_error_aborts(self, registry):
        """Test transport failures propagate without retry."""
        client = ScriptedClient(CompletionError("connection reset"))

        with pytest.raises(CompletionError, match="connection reset"):
            await make_loop(client, registry).run("Hello")
        assert client.calls == 1

    @pytest.mark.asyncio
    async def test_dispatch_without_assistant_message(self, registry):
        """Test dispatching before any model reply is a conversation state error."""
        loop = make_loop(ScriptedClient(), registry)
        loop.conversation.seed(None, "Hello")

        with pytest.raises(ConversationStateError, match="No assistant message"):
            await loop._dispatch_tools()
        assert len(loop.conversation) == 1

    @pytest.mark.asyncio
    async def test_completion_error_after_tools_aborts(self, registry):
        """Test a failure on a later turn aborts the run."""
        client = ScriptedClient(reply(None, tool_call("call_1", "Delete")), CompletionError("bad envelope"))

        with pytest.raises(CompletionError):
            await make_loop(client, registry).run("Hello")
        assert client.calls == 2

    @pytest.mark.asyncio
    async def test_malformed_arguments_abort_by_default(self, registry):
        """Test malformed tool arguments are fatal in the default mode."""
        bad = ToolCallRequest(id="call_1", tool_name="Read", raw_arguments='{"path": "notes.txt"}')
        client = ScriptedClient(reply(None, bad), reply("unreachable"))

        with pytest.raises(ToolArgumentError):
            await make_loop(client, registry).run("Read notes.txt")
        assert client.calls == 1

    @pytest.mark.asyncio
    async def test_malformed_arguments_reported_in_report_mode(self, registry, tmp_path):
        """Test report mode lets the model correct its own arguments."""
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")
        settings = Settings(api_key="k", model="test-model", tool_argument_errors="report", context_warning_tokens=None)
        client = ScriptedClient(
            reply(None, ToolCallRequest(id="call_1", tool_name="Read", raw_arguments="not json")),
            reply(None, tool_call("call_2", "Read", file_path=str(notes))),
            reply("hello"),
        )

        result = await AgentLoop.from_settings(settings, client, registry).run("Read notes.txt")

        tool_messages = [m for m in result.messages if isinstance(m, ToolMessage)]
        assert tool_messages[0].content.startswith("Invalid arguments for Read: ")
        assert tool_messages[1].content == "hello"
        assert result.content == "hello"

    @pytest.mark.asyncio
    async def test_max_turns_exceeded(self, registry):
        """Test a model that never stops calling tools hits the turn limit."""
        client = ScriptedClient(*[reply(None, tool_call(f"call_{i}", "Delete")) for i in range(5)])

        with pytest.raises(MaxTurnsExceededError):
            await make_loop(client, registry, max_turns=3).run("Loop forever")
        assert client.calls == 3

    @pytest.mark.asyncio
    async def test_max_turns_allows_answer_on_last_turn(self, registry):
        """Test an answer on the final allowed turn succeeds."""
        client = ScriptedClient(reply(None, tool_call("call_1", "Delete")), reply("done"))

        result = await make_loop(client, registry, max_turns=2).run("Go")
        assert result.content == "done"


class TestContextWarning:
    """Tests for the history size warning."""

    @pytest.mark.asyncio
    async def test_warns_when_history_is_large(self, registry, caplog):
        """Test a warning is logged above the threshold and history is kept whole."""
        client = ScriptedClient(reply("ok"))
        loop = make_loop(client, registry, context_warning_tokens=10)

        with patch("harness.services.agent.estimate_message_tokens", return_value=500):
            result = await loop.run("x" * 100)

        assert "above the 10 token warning threshold" in caplog.text
        assert result.messages[0].content == "x" * 100

    @pytest.mark.asyncio
    async def test_no_estimate_when_disabled(self, registry):
        """Test no estimation happens when the warning is disabled."""
        client = ScriptedClient(reply("ok"))

        with patch("harness.services.agent.estimate_message_tokens") as mock_estimate:
            await make_loop(client, registry).run("Hello")

        mock_estimate.assert_not_called()
