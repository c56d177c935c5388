"""Draft a business proposal from client details.

Builds a fixed-template prompt, asks the generation model for a markdown
proposal and splits the result into titled sections.
"""

from datetime import date

from proposal_engine.core.engine_context import EngineContext
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import GenerationParameters
from proposal_engine.core.schemas_proposals import FormattedProposal, GenerateProposalRequest
from proposal_engine.core.section_parser import format_proposal

logger = get_logger(__name__)

PROPOSAL_PARAMETERS = GenerationParameters(
    decoding_method="greedy",
    max_new_tokens=1000,
    min_new_tokens=100,
    repetition_penalty=1.2,
    stop_sequences=(),
)

PROPOSAL_SECTIONS = [
    "Executive Summary",
    "Project Overview",
    "Proposed Solution",
    "Timeline and Milestones",
    "Investment and ROI",
    "Next Steps",
]


def build_proposal_prompt(request: GenerateProposalRequest) -> str:
    sections = "\n".join(f"{i}. {name}" for i, name in enumerate(PROPOSAL_SECTIONS, start=1))
    return f"""Generate a professional business proposal with the following details:

Company: {request.client_name}
Industry: {request.industry}
Company Size: {request.company_size}
Project Requirements: {request.project_requirements}
Budget: {request.budget}
Timeline: {request.timeline}

Format the proposal with the following sections:
{sections}

Make it formal, professional, and detailed while keeping each section clearly separated with markdown formatting (use ## for section titles)."""


async def generate_proposal(
    request: GenerateProposalRequest,
    context: EngineContext,
    today: date | None = None,
) -> FormattedProposal:
    """
    Generate and structure a proposal.

    Args:
        request: Client details
        context: Shared engine state
        today: Date stamped on the document (defaults to today)

    Returns:
        FormattedProposal with title, date and parsed sections
    """
    session = await context.backend.open_session()

    generated = await session.generator.generate(build_proposal_prompt(request), PROPOSAL_PARAMETERS)
    proposal = format_proposal(generated, today=today)

    logger.info(
        f"Generated proposal for {request.client_name} with {len(proposal.sections)} sections",
        extra={"extra_data": {"chars": len(generated), "sections": len(proposal.sections)}},
    )
    return proposal
