"""
Win probability estimation from labelled historical proposals.

The new proposal is embedded alongside every historical proposal, the k most
similar historical records vote, and the vote is smoothed with add-alpha
(Laplace) pseudo-counts so small neighbourhoods never yield 0 or 1.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from proposal_engine.core.errors import EmbeddingProviderError
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import EmbeddingProvider
from proposal_engine.core.schemas_proposals import (
    HistoricalProposal,
    OutcomeEstimate,
    ProposalFields,
    ProposalOutcome,
)
from proposal_engine.core.similarity import rank_by_similarity, top_k

logger = get_logger(__name__)


@dataclass(frozen=True)
class OutcomeConfig:
    """Tunable constants for the neighbour vote."""

    k: int = 3
    smoothing: float = 1.0
    threshold: float = 0.5


DEFAULT_OUTCOME_CONFIG = OutcomeConfig()


def compose_proposal_text(proposal: ProposalFields) -> str:
    """Join the narrative fields into the text that gets embedded."""
    return (
        f"Executive Summary: {proposal.executive_summary}\n"
        f"Project Scope: {proposal.project_scope}\n"
        f"Technical Details: {proposal.technical_details}"
    )


def smoothed_win_probability(win_count: int, neighbors: int, smoothing: float = 1.0) -> float:
    """(wins + alpha) / (neighbours + 2 * alpha); 0.5 when nothing votes."""
    denominator = neighbors + 2 * smoothing
    if denominator == 0:
        return 0.5
    return (win_count + smoothing) / denominator


async def estimate_win_probability(
    proposal: ProposalFields,
    corpus: Sequence[HistoricalProposal],
    embedder: EmbeddingProvider,
    config: OutcomeConfig = DEFAULT_OUTCOME_CONFIG,
) -> OutcomeEstimate:
    """
    Estimate how likely a proposal is to win from its nearest historical neighbours.

    Args:
        proposal: The new proposal
        corpus: Labelled historical proposals
        embedder: Embedding provider for this request
        config: Neighbour count, smoothing and decision threshold

    Returns:
        OutcomeEstimate with outcome, probability and vote counts. Records
        with an undefined similarity (zero-norm embedding) never vote.

    Raises:
        EmbeddingProviderError: If embedding fails or returns the wrong number of vectors
    """
    neighbors: list[HistoricalProposal] = []

    if corpus:
        texts = [compose_proposal_text(p) for p in corpus]
        texts.append(compose_proposal_text(proposal))

        # One batched call: historical composites first, new proposal last
        vectors = await embedder.embed(texts)
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
            )

        query = vectors[-1]
        ranked = rank_by_similarity(query, zip(corpus, vectors[:-1]))
        # Undefined similarity (zero-norm vector) is not evidence either way
        ranked = [scored for scored in ranked if not math.isnan(scored.score)]
        neighbors = [scored.item for scored in top_k(ranked, config.k)]

    win_count = sum(1 for p in neighbors if p.is_win)
    probability = smoothed_win_probability(win_count, len(neighbors), config.smoothing)
    outcome = ProposalOutcome.WIN if probability >= config.threshold else ProposalOutcome.LOSS

    logger.info(
        f"Outcome estimate: {outcome.value} p={probability:.3f} ({win_count}/{len(neighbors)} wins)",
        extra={"extra_data": {"corpus_size": len(corpus), "neighbors": len(neighbors)}},
    )

    return OutcomeEstimate(
        outcome=outcome,
        probability=probability,
        neighbors_used=len(neighbors),
        win_count=win_count,
    )
