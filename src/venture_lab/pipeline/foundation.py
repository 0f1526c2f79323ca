"""Foundation pipeline — the seven strategy documents generated per idea, plus document chat."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from venture_lab.agents.advisors import DOC_ADVISOR_MAP
from venture_lab.agents.stream_parser import StreamParser
from venture_lab.errors import StreamInterruptedError
from venture_lab.models.base import utcnow
from venture_lab.models.foundation import DocumentKind, FoundationDocument
from venture_lab.models.work_item import WorkItemStatus
from venture_lab.pipeline.dependencies import DOC_DEPENDENCIES, PRIORITY, generation_order

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from venture_lab.agents.critique import CritiqueRound
    from venture_lab.agents.prompts import PromptCache
    from venture_lab.agents.runner import AgentRunner, StepOutcome
    from venture_lab.database.repositories.analyses import AnalysisRepository
    from venture_lab.database.repositories.foundation import FoundationRepository
    from venture_lab.models.analysis import Analysis
    from venture_lab.models.progress import PipelineProgress
    from venture_lab.models.work_item import WorkItem
    from venture_lab.pipeline.budget import TimeBudget
    from venture_lab.pipeline.scheduler import GenerationScheduler

logger = logging.getLogger(__name__)

PIPELINE = "foundation"


@dataclass(frozen=True)
class ChatEvent:
    """One event of a document chat stream: ``text``, ``document`` or ``error``."""

    type: str
    text: str = ""
    version: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "text": self.text}
        if self.version is not None:
            data["version"] = self.version
        return data


class FoundationPipeline:
    def __init__(
        self,
        *,
        docs_repo: FoundationRepository,
        analyses_repo: AnalysisRepository,
        runner: AgentRunner,
        prompts: PromptCache,
        scheduler: GenerationScheduler,
    ) -> None:
        self._docs = docs_repo
        self._analyses = analyses_repo
        self._runner = runner
        self._prompts = prompts
        self._scheduler = scheduler

    async def plan(self, idea_id: str) -> list[FoundationDocument]:
        """One work item per kind, in generation order.

        Stored documents are reused; a stale document is planned as pending.
        """
        stored = {doc.kind: doc for doc in await self._docs.list_for_idea(idea_id)}
        plan: list[FoundationDocument] = []
        for kind in generation_order():
            doc = stored.get(kind)
            if doc is None:
                doc = FoundationDocument(
                    id=FoundationDocument.document_id(idea_id, kind),
                    idea_id=idea_id,
                    kind=kind,
                    advisor_id=DOC_ADVISOR_MAP[kind],
                )
            elif doc.stale and doc.status == WorkItemStatus.COMPLETE:
                doc.status = WorkItemStatus.PENDING
            doc.depends_on = [k.value for k in PRIORITY if k in DOC_DEPENDENCIES[kind]]
            plan.append(doc)
        return plan

    async def has_analysis(self, idea_id: str) -> bool:
        return await self._analyses.get_for_idea(idea_id) is not None

    async def run(
        self,
        idea_id: str,
        kinds: Sequence[str] | None = None,
        strategic_inputs: dict[str, str] | None = None,
        budget: TimeBudget | None = None,
    ) -> PipelineProgress | None:
        """Generate the requested kinds (default: every kind not yet complete).

        Returns ``None`` when there is no analysis for the idea or another run
        already owns it. Unknown kinds raise ``ValueError``.
        """
        analysis = await self._analyses.get_for_idea(idea_id)
        if analysis is None:
            logger.warning("Foundation run skipped, no analysis — idea=%s", idea_id)
            return None

        plan = await self.plan(idea_id)
        if kinds is None:
            requested = [d.id for d in plan if d.status != WorkItemStatus.COMPLETE]
        else:
            wanted = {DocumentKind(k) for k in kinds}
            requested = [d.id for d in plan if d.kind in wanted]

        handler = _FoundationWork(
            self, self._runner, self._prompts, analysis, plan, strategic_inputs or {}
        )
        return await self._scheduler.run(
            pipeline=PIPELINE,
            subject_id=idea_id,
            plan=plan,
            requested_ids=requested,
            handler=handler,
            by_dependency=True,
            budget=budget,
        )

    async def get_document(self, idea_id: str, kind: str) -> FoundationDocument | None:
        return await self._docs.get_doc(idea_id, DocumentKind(kind))

    async def chat(
        self,
        doc: FoundationDocument,
        messages: Sequence[dict[str, str]],
        current_content: str | None = None,
    ) -> AsyncIterator[ChatEvent]:
        """Stream an advisor conversation about one document.

        Chat text is yielded as it arrives. A complete ``<updated_document>``
        block is saved as a new version once the stream ends; an interrupted
        block leaves the stored document untouched.
        """
        advisor_id = doc.advisor_id or DOC_ADVISOR_MAP[DocumentKind(doc.kind)]
        instructions = "\n\n".join(
            [self._prompts.advisor(advisor_id), self._prompts.get_or_load("chat")]
        )
        content = current_content if current_content is not None else doc.content or ""
        prompt = "\n\n".join(
            [
                f"Document type: {doc.kind}",
                f"Current document:\n{content}",
                "Conversation:",
                _transcript(messages),
            ]
        )

        parser = StreamParser()
        document: str | None = None
        try:
            async for chunk in self._runner.stream(instructions, prompt):
                parsed = parser.feed(chunk)
                if parsed.chat_text:
                    yield ChatEvent(type="text", text=parsed.chat_text)
                if parsed.document is not None:
                    document = parsed.document
            parser.finalize()
        except StreamInterruptedError as exc:
            logger.warning("Chat interrupted — id=%s", doc.id)
            yield ChatEvent(type="error", text=str(exc))
            return

        if document is not None:
            doc.content = document.strip()
            doc.version += 1
            doc.generated_at = utcnow()
            doc.status = WorkItemStatus.COMPLETE
            doc.stale = False
            await self._docs.upsert(doc)
            logger.info("Document updated from chat — id=%s version=%d", doc.id, doc.version)
            yield ChatEvent(type="document", text=doc.content, version=doc.version)

    async def save_generated(self, doc: FoundationDocument, content: str) -> None:
        doc.content = content
        doc.status = WorkItemStatus.COMPLETE
        doc.error = None
        doc.stale = False
        doc.version += 1
        doc.generated_at = utcnow()
        await self._docs.upsert(doc)

    async def save_failed(self, doc: FoundationDocument, error: str) -> None:
        doc.status = WorkItemStatus.ERROR
        doc.error = error
        await self._docs.upsert(doc)


class _FoundationWork:
    """Scheduler handler for one foundation run; documents are single-pass, no critique."""

    def __init__(
        self,
        pipeline: FoundationPipeline,
        runner: AgentRunner,
        prompts: PromptCache,
        analysis: Analysis,
        plan: Sequence[FoundationDocument],
        strategic_inputs: dict[str, str],
    ) -> None:
        self._pipeline = pipeline
        self._runner = runner
        self._prompts = prompts
        self._analysis = analysis
        self._docs = {doc.kind: doc for doc in plan}
        self._inputs = strategic_inputs

    def revision_rounds(self, item: WorkItem) -> int:  # noqa: ARG002
        return 1

    async def generate(
        self,
        item: WorkItem,
        *,
        budget: TimeBudget | None,
        brief: str | None = None,
        previous_draft: str | None = None,
    ) -> StepOutcome:
        doc = self._docs[item.kind]
        instructions = "\n\n".join(
            [
                self._prompts.advisor(doc.advisor_id or DOC_ADVISOR_MAP[DocumentKind(doc.kind)]),
                self._prompts.get_or_load(f"foundation/{doc.kind}"),
            ]
        )
        return await self._runner.run_step(
            stage=f"{PIPELINE}:{doc.kind}",
            subject_id=doc.idea_id,
            instructions=instructions,
            prompt=self._prompt(doc, brief, previous_draft),
            budget=budget,
        )

    async def review(
        self,
        item: WorkItem,  # noqa: ARG002
        draft: str,  # noqa: ARG002
        previous_avg_score: float | None,  # noqa: ARG002
    ) -> CritiqueRound | None:
        return None

    async def save(self, item: WorkItem, content: str, review: CritiqueRound | None) -> None:
        await self._pipeline.save_generated(self._docs[item.kind], content)

    async def mark_failed(self, item: WorkItem, error: str) -> None:
        await self._pipeline.save_failed(self._docs[item.kind], error)

    def _prompt(self, doc: FoundationDocument, brief: str | None, previous: str | None) -> str:
        parts = [self._analysis.context()]
        if doc.kind == DocumentKind.STRATEGY and self._inputs:
            parts.append(
                "Strategic inputs from the founder:\n"
                + "\n".join(f"- {k}: {v}" for k, v in self._inputs.items() if v)
            )
        for kind in doc.depends_on:
            prerequisite = self._docs.get(kind)
            if prerequisite is not None and prerequisite.content:
                parts.append(f"## {kind}\n{prerequisite.content}")
        if previous:
            parts.append(f"Previous draft:\n{previous}")
        if brief:
            parts.append(f"Revise to address:\n{brief}")
        parts.append(f"Write the {doc.kind} document in markdown.")
        return "\n\n".join(parts)


def _transcript(messages: Sequence[dict[str, str]]) -> str:
    return "\n\n".join(
        f"{m.get('role', 'user').upper()}: {m.get('content', '')}" for m in messages
    )
