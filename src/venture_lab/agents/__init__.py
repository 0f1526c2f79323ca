"""LLM-facing building blocks: stream parsing, prompts, runner, critique gate."""

from venture_lab.agents.advisors import ADVISORS, DOC_ADVISOR_MAP, RECIPES, get_advisor, get_recipe
from venture_lab.agents.critique import CritiqueRound, CritiqueService
from venture_lab.agents.editor import apply_editor_rubric
from venture_lab.agents.prompts import PromptCache
from venture_lab.agents.runner import AgentRunner, Completed, Failed, Paused, StepResult
from venture_lab.agents.stream_parser import StreamParser, parse_response

__all__ = [
    "ADVISORS",
    "DOC_ADVISOR_MAP",
    "RECIPES",
    "AgentRunner",
    "Completed",
    "CritiqueRound",
    "CritiqueService",
    "Failed",
    "Paused",
    "PromptCache",
    "StepResult",
    "StreamParser",
    "apply_editor_rubric",
    "get_advisor",
    "get_recipe",
    "parse_response",
]
