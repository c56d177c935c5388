"""Predict whether a proposal will win from similar historical proposals."""

from proposal_engine.core.engine_context import EngineContext
from proposal_engine.core.outcome import estimate_win_probability
from proposal_engine.core.schemas_proposals import OutcomeEstimate, ProposalFields


async def analyze_outcome(proposal: ProposalFields, context: EngineContext) -> OutcomeEstimate:
    """Score ``proposal`` against the loaded historical corpus."""
    session = await context.backend.open_session()
    return await estimate_win_probability(
        proposal,
        context.corpus,
        session.embedder,
        context.outcome_config,
    )
