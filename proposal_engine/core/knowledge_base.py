"""
Best-practice knowledge base and retrieval.

The knowledge base is an immutable value built once at startup and passed to
each request. Statements are embedded per request and ranked against the
proposal; nothing is indexed or cached.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from proposal_engine.core.errors import EmbeddingProviderError
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import EmbeddingProvider
from proposal_engine.core.similarity import ScoredItem, rank_by_similarity, top_k

logger = get_logger(__name__)


@dataclass(frozen=True)
class Practice:
    """A single best-practice statement and the category it belongs to."""

    category: str
    text: str


class KnowledgeBase:
    """Category-partitioned best-practice statements.

    Category order is the insertion order of the mapping it was built from, so
    flattening is stable for the lifetime of the process.
    """

    def __init__(self, categories: Mapping[str, list[str] | tuple[str, ...]]):
        self._categories: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {name: tuple(statements) for name, statements in categories.items()}
        )

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    def statements(self, category: str) -> tuple[str, ...]:
        return self._categories[category]

    def practices(self) -> list[Practice]:
        """Flatten into one ordered list of practices."""
        return [
            Practice(category=name, text=text)
            for name, statements in self._categories.items()
            for text in statements
        ]

    def __len__(self) -> int:
        return sum(len(statements) for statements in self._categories.values())

    def __contains__(self, practice: object) -> bool:
        return isinstance(practice, Practice) and practice.text in self._categories.get(practice.category, ())


DEFAULT_PRACTICES: dict[str, tuple[str, ...]] = {
    "executiveSummary": (
        "Executive summaries must include clear ROI metrics and quantifiable business impact",
        "Value proposition should highlight unique differentiators and competitive advantages",
        "Summary should address key stakeholder concerns and business objectives",
    ),
    "technical": (
        "Technical specifications must include detailed system architecture and integration points",
        "Performance metrics and SLAs should be clearly defined with measurement criteria",
        "Security and compliance requirements must be explicitly addressed",
    ),
    "timeline": (
        "Project timeline should include risk buffers and contingency planning",
        "Dependencies between phases must be clearly mapped with critical path identified",
        "Resource allocation should be specified for each project phase",
    ),
    "budget": (
        "Budget breakdown should include both direct and indirect costs",
        "ROI calculations must consider both quantitative and qualitative benefits",
        "Payment milestones should align with deliverable completion",
    ),
    "riskMitigation": (
        "Risk assessment should cover technical, operational, and business risks",
        "Mitigation strategies must include preventive and reactive measures",
        "Impact analysis should quantify potential losses and mitigation costs",
    ),
}


def default_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase(DEFAULT_PRACTICES)


async def retrieve_relevant_practices(
    proposal_text: str,
    knowledge_base: KnowledgeBase,
    embedder: EmbeddingProvider,
    k: int = 5,
) -> list[ScoredItem[Practice]]:
    """
    Retrieve the best practices most relevant to a proposal.

    Args:
        proposal_text: Proposal to match against
        knowledge_base: Practices to choose from
        embedder: Embedding provider for this request
        k: Maximum number of practices to return

    Returns:
        Up to k practices, most similar first. Practices with an undefined
        similarity (zero-norm embedding) are never returned.

    Raises:
        EmbeddingProviderError: If embedding fails or returns the wrong number of vectors
    """
    practices = knowledge_base.practices()
    if not practices or k <= 0:
        return []

    query_vectors = await embedder.embed([proposal_text])
    practice_vectors = await embedder.embed([p.text for p in practices])

    if len(query_vectors) != 1 or len(practice_vectors) != len(practices):
        raise EmbeddingProviderError(
            f"Expected 1 and {len(practices)} embeddings, "
            f"got {len(query_vectors)} and {len(practice_vectors)}",
        )

    ranked = rank_by_similarity(query_vectors[0], zip(practices, practice_vectors))
    ranked = [scored for scored in ranked if not math.isnan(scored.score)]
    relevant = top_k(ranked, k)

    logger.debug(
        f"Retrieved {len(relevant)} of {len(practices)} practices",
        extra={"extra_data": {"categories": ",".join(sorted({s.item.category for s in relevant}))}},
    )
    return relevant
