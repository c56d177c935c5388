"""Pydantic schemas for proposals, outcome estimates and analyses."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# =======================
# Shared types
# =======================


class ProposalOutcome(str, Enum):
    """Recorded result of a historical proposal."""

    WIN = "win"
    LOSS = "loss"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =======================
# Proposal text records
# =======================


class ProposalFields(BaseModel):
    """The three narrative fields used to compare proposals."""

    executive_summary: str = Field(..., description="Executive summary text")
    project_scope: str = Field(..., description="Project scope text")
    technical_details: str = Field(..., description="Technical details text")


class ProposalMetadata(BaseModel):
    """Labels attached to a historical proposal.

    ``outcome`` is None for unlabelled records; unrecognised labels are treated
    the same way.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    outcome: ProposalOutcome | None = Field(None, description="win, loss, or unlabelled")

    @field_validator("outcome", mode="before")
    @classmethod
    def _unknown_outcome_is_unlabelled(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value if value in {o.value for o in ProposalOutcome} else None
        return value if isinstance(value, ProposalOutcome) else None


class HistoricalProposal(ProposalFields):
    """A labelled proposal from the static historical corpus."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    executive_summary: str = ""
    project_scope: str = ""
    technical_details: str = ""
    metadata: ProposalMetadata = Field(default_factory=ProposalMetadata)

    @field_validator("executive_summary", "project_scope", "technical_details", mode="before")
    @classmethod
    def _missing_text_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _missing_metadata_is_unlabelled(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def outcome(self) -> ProposalOutcome | None:
        return self.metadata.outcome

    @property
    def is_win(self) -> bool:
        return self.metadata.outcome is ProposalOutcome.WIN


# =======================
# Request schemas
# =======================


class GenerateProposalRequest(CamelModel):
    """Client details used to draft a new proposal."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True
    )

    client_name: str = Field(..., min_length=1, description="Client company name")
    industry: str = Field(..., description="Client industry")
    company_size: str = Field(..., description="Client company size")
    project_requirements: str = Field(..., min_length=1, description="What the client needs")
    budget: str = Field(..., description="Budget, free text")
    timeline: str = Field(..., description="Timeline, free text")


class AnalyzeOutcomeRequest(ProposalFields):
    """A new proposal to score against the historical corpus."""


class AnalyzeProposalRequest(CamelModel):
    """Proposal text to critique against the best-practice knowledge base."""

    proposal_text: str = Field(..., min_length=1, description="Full proposal text")


# =======================
# Response schemas
# =======================


class ProposalSection(BaseModel):
    """A titled section of a generated proposal."""

    title: str
    content: str


class FormattedProposal(CamelModel):
    """A generated proposal split into sections."""

    title: str = Field(..., description="Document title")
    date: str = Field(..., description="Generation date, DD/MM/YYYY")
    sections: list[ProposalSection] = Field(default_factory=list)


class OutcomeEstimate(CamelModel):
    """Smoothed nearest-neighbour win estimate."""

    outcome: ProposalOutcome = Field(..., description="Predicted outcome")
    probability: float = Field(..., ge=0.0, le=1.0, description="Smoothed win probability")
    neighbors_used: int = Field(..., ge=0, description="Historical proposals that voted")
    win_count: int = Field(..., ge=0, description="Voting neighbours labelled win")


class RelevantPractice(CamelModel):
    """A best-practice statement retrieved for a proposal."""

    text: str
    similarity: float
    category: str


class AnalysisMetadata(CamelModel):
    """Provenance for a proposal critique."""

    analysis_date: str = Field(..., description="ISO-8601 UTC timestamp")
    model_version: str = Field(..., description="Model used for the critique")
    knowledge_base_categories: list[str] = Field(default_factory=list)


class ProposalAnalysis(CamelModel):
    """Critique of a proposal with the practices that informed it."""

    relevant_practices: list[RelevantPractice] = Field(default_factory=list)
    analysis: str
    metadata: AnalysisMetadata
