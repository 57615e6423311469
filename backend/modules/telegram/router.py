"""
Keyword routing of free-text bot messages to n8n workflows.
"""

import re
from typing import Optional

# Checked in order; the first workflow with a matching keyword wins
WORKFLOW_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("reminder", ("remind", "reminder", "alarm")),
    ("translate", ("translate", "translation", "in spanish", "in french", "in german")),
    ("weather", ("weather", "forecast", "temperature", "rain")),
    ("email_scan", ("email", "inbox", "gmail")),
    ("pdf_summary", ("pdf", "summarize", "summarise", "summary", "document")),
]

WORKFLOW_LABELS = {
    "weather": "Weather",
    "translate": "Translation",
    "email_scan": "Email scan",
    "pdf_summary": "PDF summary",
    "reminder": "Reminder",
}


class MessageRouter:
    """Maps a message to a workflow id by keyword."""

    def __init__(self, keywords: Optional[list[tuple[str, tuple[str, ...]]]] = None):
        self._rules = [
            (workflow, [re.compile(rf"\b{re.escape(k)}") for k in words])
            for workflow, words in (keywords or WORKFLOW_KEYWORDS)
        ]

    def route(self, text: str) -> Optional[str]:
        """Return the workflow id for ``text``, or None if nothing matches."""
        lowered = text.lower()
        for workflow, patterns in self._rules:
            if any(p.search(lowered) for p in patterns):
                return workflow
        return None

    @property
    def workflows(self) -> list[str]:
        return [workflow for workflow, _ in self._rules]
