"""
Split generated proposal text into titled sections.

Sections start at a markdown H2 marker (``##`` followed by whitespace, which
may sit anywhere in a line). The parser is a three-state machine:

    OUTSIDE --marker--> IN_TITLE --non-blank text--> IN_CONTENT --marker--> IN_TITLE

Text before the first marker is discarded. A section is emitted only when it
has both a title and non-blank content.
"""

import io
import re
from collections.abc import Iterator
from datetime import date
from enum import Enum

from proposal_engine.core.schemas_proposals import FormattedProposal, ProposalSection

SECTION_MARKER = re.compile(r"##(?:\s+|$)")

PROPOSAL_TITLE = "Business Proposal"


class _State(Enum):
    OUTSIDE = "outside"
    IN_TITLE = "in_title"
    IN_CONTENT = "in_content"


def _lines(text: str) -> Iterator[str]:
    for line in io.StringIO(text):
        yield line.rstrip("\r\n")


def _fragments(text: str) -> Iterator[str | None]:
    """Yield line fragments, with None standing for each section marker."""
    for line in _lines(text):
        pieces = SECTION_MARKER.split(line)
        yield pieces[0]
        for piece in pieces[1:]:
            yield None
            yield piece


class _SectionBuilder:
    def __init__(self) -> None:
        self.state = _State.OUTSIDE
        self.title = ""
        self.content: list[str] = []
        self.sections: list[ProposalSection] = []

    def marker(self) -> None:
        self._flush()
        self.state = _State.IN_TITLE
        self.title = ""
        self.content = []

    def text(self, fragment: str) -> None:
        if not fragment.strip():
            return
        if self.state is _State.IN_TITLE:
            self.title = fragment.strip()
            self.state = _State.IN_CONTENT
        elif self.state is _State.IN_CONTENT:
            self.content.append(fragment)

    def finish(self) -> list[ProposalSection]:
        self._flush()
        self.state = _State.OUTSIDE
        return self.sections

    def _flush(self) -> None:
        if self.state is not _State.IN_CONTENT:
            return
        content = "\n".join(self.content).strip()
        if self.title and content:
            self.sections.append(ProposalSection(title=self.title, content=content))


def parse_sections(raw_text: str) -> list[ProposalSection]:
    """
    Parse generated text into ordered sections.

    Args:
        raw_text: Markdown-flavoured text with ``## Title`` markers

    Returns:
        Sections in document order; may be empty
    """
    builder = _SectionBuilder()
    for fragment in _fragments(raw_text or ""):
        if fragment is None:
            builder.marker()
        else:
            builder.text(fragment)
    return builder.finish()


def format_proposal(raw_text: str, today: date | None = None) -> FormattedProposal:
    """Wrap parsed sections with the document title and a DD/MM/YYYY date."""
    today = today or date.today()
    return FormattedProposal(
        title=PROPOSAL_TITLE,
        date=today.strftime("%d/%m/%Y"),
        sections=parse_sections(raw_text),
    )
