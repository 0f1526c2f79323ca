"""Tests for AgentRunner step execution and outcomes."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from venture_lab.agents.runner import AgentRunner, Completed, Failed, Paused
from venture_lab.models.agent_run import AgentRunStatus


class _Update:
    def __init__(self, text: str) -> None:
        self.text = text


def _agent_streaming(*chunks: str, error: Exception | None = None) -> MagicMock:
    """Agent class mock whose run(stream=True) yields the chunks, optionally then raises."""

    async def run(prompt: str, stream: bool = False):  # noqa: ARG001
        for chunk in chunks:
            yield _Update(chunk)
        if error is not None:
            raise error

    agent_cls = MagicMock()
    agent_cls.return_value.run = run
    return agent_cls


@pytest.fixture
def runs_repo() -> AsyncMock:
    return AsyncMock()


@pytest.mark.unit
class TestRunStep:
    """Typed outcomes of a single step."""

    async def test_completed_with_document(self, runs_repo: AsyncMock) -> None:
        """Chat text and the tagged document are both captured."""
        agent_cls = _agent_streaming("Done. <updated_", "document>NEW</updated_document>")
        with patch("venture_lab.agents.runner.Agent", agent_cls):
            outcome = await AgentRunner(MagicMock(), runs_repo).run_step(
                stage="foundation:strategy", subject_id="idea-1", instructions="i", prompt="p"
            )
        assert isinstance(outcome, Completed)
        assert outcome.result.chat_text == "Done. "
        assert outcome.result.output == "NEW"
        run = runs_repo.update.call_args.args[0]
        assert run.status == AgentRunStatus.COMPLETED
        assert run.trigger_id == "idea-1"

    async def test_output_falls_back_to_chat_text(self) -> None:
        """Without a tagged block the stripped chat text is the output."""
        with patch("venture_lab.agents.runner.Agent", _agent_streaming("  # Doc\n")):
            outcome = await AgentRunner(MagicMock()).run_step(
                stage="s", subject_id="x", instructions="i", prompt="p"
            )
        assert isinstance(outcome, Completed)
        assert outcome.result.output == "# Doc"

    async def test_exhausted_budget_pauses_without_calling_llm(self, runs_repo: AsyncMock) -> None:
        """An exhausted budget returns Paused before any work starts."""
        budget = MagicMock()
        budget.exhausted.return_value = True
        agent_cls = _agent_streaming("never")
        with patch("venture_lab.agents.runner.Agent", agent_cls):
            outcome = await AgentRunner(MagicMock(), runs_repo).run_step(
                stage="s", subject_id="x", instructions="i", prompt="p", budget=budget
            )
        assert isinstance(outcome, Paused)
        agent_cls.assert_not_called()
        runs_repo.create.assert_not_called()

    async def test_interrupted_stream_fails_without_document(self, runs_repo: AsyncMock) -> None:
        """An unclosed block is a failure, never a partial document."""
        with patch(
            "venture_lab.agents.runner.Agent",
            _agent_streaming("Sure <updated_document>half"),
        ):
            outcome = await AgentRunner(MagicMock(), runs_repo).run_step(
                stage="s", subject_id="x", instructions="i", prompt="p"
            )
        assert isinstance(outcome, Failed)
        assert "interrupted" in outcome.error.lower()
        assert runs_repo.update.call_args.args[0].status == AgentRunStatus.FAILED

    async def test_service_error_becomes_failed(self) -> None:
        """LLM exceptions are reported as Failed, not raised."""
        agent_cls = _agent_streaming("partial", error=RuntimeError("rate limited"))
        with patch("venture_lab.agents.runner.Agent", agent_cls):
            outcome = await AgentRunner(MagicMock()).run_step(
                stage="s", subject_id="x", instructions="i", prompt="p"
            )
        assert isinstance(outcome, Failed)
        assert "rate limited" in outcome.error
