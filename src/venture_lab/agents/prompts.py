"""Prompt cache — reads system prompts from the prompts/ directory once per process."""

from __future__ import annotations

import logging
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent.parent / "prompts"

logger = logging.getLogger(__name__)


class PromptCache:
    """Process-scoped cache of markdown prompts keyed by relative name.

    ``get_or_load("critique")`` reads ``prompts/critique.md``;
    ``advisor("april-dunford")`` reads ``prompts/advisors/april-dunford.md``.
    Entries live until :meth:`clear` is called.
    """

    def __init__(self, root: Path = PROMPTS_DIR) -> None:
        self._root = root
        self._entries: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_load(self, name: str) -> str:
        """Return the prompt text, reading the file on first use.

        Raises ``FileNotFoundError`` if the prompt file does not exist.
        """
        cached = self._entries.get(name)
        if cached is not None:
            return cached
        path = self._root / f"{name}.md"
        text = path.read_text(encoding="utf-8")
        self._entries[name] = text
        logger.debug("Prompt loaded — name=%s path=%s", name, path)
        return text

    def advisor(self, advisor_id: str) -> str:
        return self.get_or_load(f"advisors/{advisor_id}")

    def clear(self) -> None:
        self._entries.clear()
