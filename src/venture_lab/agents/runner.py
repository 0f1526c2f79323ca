"""AgentRunner — drives one generative step: LLM call, stream parse, run record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from agent_framework import Agent

from venture_lab.agents.stream_parser import StreamParser
from venture_lab.errors import StreamInterruptedError
from venture_lab.models.agent_run import AgentRun, AgentRunStatus

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from venture_lab.database.repositories.agent_runs import AgentRunRepository
    from venture_lab.pipeline.budget import TimeBudget

logger = logging.getLogger(__name__)

PAUSE_REASON = "Time budget reached, will resume"


@dataclass(frozen=True)
class StepResult:
    chat_text: str
    document: str | None = None

    @property
    def output(self) -> str:
        """The tagged document when one was produced, otherwise the chat text."""
        if self.document is not None:
            return self.document.strip()
        return self.chat_text.strip()


@dataclass(frozen=True)
class Completed:
    result: StepResult


@dataclass(frozen=True)
class Paused:
    """Cooperative stop: not a failure; a later invocation resumes the work."""

    reason: str = PAUSE_REASON


@dataclass(frozen=True)
class Failed:
    error: str


StepOutcome = Completed | Paused | Failed


class AgentRunner:
    """Run single LLM steps and report them as typed outcomes.

    A step is never preempted: the budget is checked before the call starts,
    and a call in flight always finishes (or fails) before the caller sees a
    pause.
    """

    def __init__(
        self,
        chat_client: object,
        runs_repo: AgentRunRepository | None = None,
    ) -> None:
        self._client = chat_client
        self._runs_repo = runs_repo

    async def run_step(
        self,
        *,
        stage: str,
        subject_id: str,
        instructions: str,
        prompt: str,
        budget: TimeBudget | None = None,
    ) -> StepOutcome:
        if budget is not None and budget.exhausted():
            logger.info(
                "Step not started, budget exhausted — stage=%s subject=%s",
                stage,
                subject_id,
            )
            return Paused()

        run = await self._start_run(stage, subject_id)
        parser = StreamParser()
        chat: list[str] = []
        document: str | None = None
        try:
            async for chunk in self.stream(instructions, prompt):
                parsed = parser.feed(chunk)
                chat.append(parsed.chat_text)
                if parsed.document is not None:
                    document = parsed.document
            parser.finalize()
        except StreamInterruptedError as exc:
            logger.warning("Step stream interrupted — stage=%s subject=%s", stage, subject_id)
            await self._finish_run(run, error=str(exc))
            return Failed(str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Step failed — stage=%s subject=%s", stage, subject_id)
            await self._finish_run(run, error=str(exc) or type(exc).__name__)
            return Failed(f"LLM call failed: {exc}")

        result = StepResult(chat_text="".join(chat), document=document)
        await self._finish_run(run, output_chars=len(result.output))
        logger.info(
            "Step complete — stage=%s subject=%s document=%s chars=%d",
            stage,
            subject_id,
            document is not None,
            len(result.output),
        )
        return Completed(result)

    async def stream(self, instructions: str, prompt: str) -> AsyncIterator[str]:
        """Yield raw text chunks from the LLM as they arrive."""
        agent = Agent(client=self._client, instructions=instructions)
        async for update in agent.run(prompt, stream=True):
            if update.text:
                yield update.text

    async def _start_run(self, stage: str, subject_id: str) -> AgentRun | None:
        if self._runs_repo is None:
            return None
        run = AgentRun(
            stage=stage,
            trigger_id=subject_id,
            input={"stage": stage},
            started_at=datetime.now(UTC),
        )
        await self._runs_repo.create(run)
        return run

    async def _finish_run(
        self,
        run: AgentRun | None,
        *,
        error: str | None = None,
        output_chars: int = 0,
    ) -> None:
        if run is None or self._runs_repo is None:
            return
        run.completed_at = datetime.now(UTC)
        if error:
            run.status = AgentRunStatus.FAILED
            run.output = {"error": error}
        else:
            run.status = AgentRunStatus.COMPLETED
            run.output = {"chars": output_chars}
        await self._runs_repo.update(run, run.trigger_id)
