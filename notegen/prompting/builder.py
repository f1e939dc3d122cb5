"""Builds the article prompt sent to the completion endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..errors import EmptyInputError
from ..models import GenerationRequest, PrimaryDocument, ReferenceDocument
from .constants import NONE_PLACEHOLDER, REFERENCE_SEPARATOR, TONE_GUIDES


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


class PromptBuilder:
    """Assembles reference notes, primary content and article options into one prompt."""

    PREAMBLE = (
        "You are a popular writer on note. Using the reference material and the "
        "detailed content below, write a note article."
    )
    WRITING_RULES: tuple[str, ...] = (
        "Write natural prose that reads as if a person wrote it",
        "Avoid phrasing that sounds machine-generated",
        "Address the reader directly",
        "Open with a hook that draws the reader in, as note articles do",
    )
    LENGTH_INSTRUCTION = "Write a note article of roughly 3000 to 5000 characters."

    def build(self, request: GenerationRequest) -> str:
        """Render the prompt for ``request``; fails fast when there is nothing to submit."""
        if request.is_empty:
            raise EmptyInputError("Please upload files first")
        directive = self.tone_directive(request.tone)

        lines: List[str] = [self.PREAMBLE, "", "## Key instructions"]
        lines.extend(f"- {rule}" for rule in self.WRITING_RULES)
        lines.extend(["", f"## Tone: {directive}"])

        if request.title_hint.strip():
            lines.extend(["", f"## Title suggestion: {request.title_hint}"])

        lines.extend(["", "## Reference material", self.render_references(request.references)])
        lines.extend(["", "## Detailed content", self.render_primary(request.primary)])
        lines.extend(["", self.LENGTH_INSTRUCTION])
        return "\n".join(lines)

    def assemble(
        self,
        references: Iterable[ReferenceDocument],
        primary: Optional[PrimaryDocument],
        *,
        title_hint: str = "",
        tone: str,
    ) -> str:
        """Convenience wrapper building a fresh request before rendering it."""
        request = GenerationRequest(
            references=tuple(references),
            primary=primary,
            title_hint=title_hint,
            tone=tone,
        )
        return self.build(request)

    @staticmethod
    def tone_directive(tone: str) -> str:
        try:
            return TONE_GUIDES[tone]
        except KeyError:
            raise ValueError(
                f"Unknown tone {tone!r}; expected one of {', '.join(TONE_GUIDES)}"
            ) from None

    @staticmethod
    def render_references(references: Sequence[ReferenceDocument]) -> str:
        if not references:
            return NONE_PLACEHOLDER
        return REFERENCE_SEPARATOR.join(f"### {doc.name}\n{doc.content}" for doc in references)

    @staticmethod
    def render_primary(primary: Optional[PrimaryDocument]) -> str:
        if primary is None or not primary.content:
            return NONE_PLACEHOLDER
        return primary.content

    @staticmethod
    def build_messages(prompt: str) -> List[PromptMessage]:
        return [PromptMessage(role="user", content=prompt)]


__all__ = ["PromptBuilder", "PromptMessage"]
