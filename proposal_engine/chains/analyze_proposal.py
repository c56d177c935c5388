"""Critique a proposal against retrieved best practices.

Retrieval-augmented: the practices most similar to the proposal are placed in
the prompt ahead of a fixed scoring rubric.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from proposal_engine.core.engine_context import EngineContext
from proposal_engine.core.knowledge_base import Practice, retrieve_relevant_practices
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import GenerationParameters
from proposal_engine.core.schemas_proposals import (
    AnalysisMetadata,
    ProposalAnalysis,
    RelevantPractice,
)
from proposal_engine.core.similarity import ScoredItem

logger = get_logger(__name__)

ANALYSIS_PARAMETERS = GenerationParameters(
    decoding_method="greedy",
    max_new_tokens=1500,
    min_new_tokens=200,
    temperature=0.7,
    repetition_penalty=1.2,
)

ANALYSIS_RUBRIC = """Provide a comprehensive analysis in this format:

QUANTITATIVE SCORING
Rate each aspect from 1-10 and provide brief justification:
- Clarity: [score] - [justification]
- Completeness: [score] - [justification]
- Feasibility: [score] - [justification]
- Value Proposition: [score] - [justification]
Overall Score: [weighted average]

DETAILED ANALYSIS
For each section below, provide specific findings and recommendations:

AREA: [section name]
CURRENT STATE: [detailed current analysis]
GAPS: [identified gaps]
IMPACT: [business impact of gaps]
PRIORITY: [High/Medium/Low]
RECOMMENDATIONS: [specific, actionable improvements]
IMPLEMENTATION COMPLEXITY: [Easy/Medium/Hard]
EXPECTED ROI: [Low/Medium/High with justification]
---"""


def build_analysis_prompt(proposal_text: str, practices: Sequence[ScoredItem[Practice]]) -> str:
    practice_lines = "\n".join(f"- {p.item.text}" for p in practices)
    return f"""As an expert business proposal analyst, review this proposal using these best practices:
{practice_lines}

Proposal to analyze:
{proposal_text}

{ANALYSIS_RUBRIC}"""


async def analyze_proposal(
    proposal_text: str,
    context: EngineContext,
    now: datetime | None = None,
) -> ProposalAnalysis:
    """
    Retrieve relevant practices and generate a critique.

    Args:
        proposal_text: Proposal to review
        context: Shared engine state
        now: Timestamp for the metadata (defaults to current UTC time)

    Returns:
        ProposalAnalysis with the critique, the practices used and metadata
    """
    session = await context.backend.open_session()

    practices = await retrieve_relevant_practices(
        proposal_text,
        context.knowledge_base,
        session.embedder,
        k=context.practices_top_k,
    )
    analysis = await session.generator.generate(
        build_analysis_prompt(proposal_text, practices), ANALYSIS_PARAMETERS
    )

    logger.info(
        f"Analyzed proposal with {len(practices)} practices",
        extra={"extra_data": {"chars": len(proposal_text), "model": session.model_version}},
    )

    return ProposalAnalysis(
        relevant_practices=[
            RelevantPractice(text=p.item.text, similarity=p.score, category=p.item.category)
            for p in practices
        ],
        analysis=analysis,
        metadata=AnalysisMetadata(
            analysis_date=(now or datetime.now(timezone.utc)).isoformat(),
            model_version=session.model_version,
            knowledge_base_categories=context.knowledge_base.categories,
        ),
    )
