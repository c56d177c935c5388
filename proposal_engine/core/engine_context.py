"""Process-wide, read-only state shared by every request."""

from dataclasses import dataclass

from proposal_engine.core.config import Settings
from proposal_engine.core.corpus import HistoricalCorpus, load_historical_corpus
from proposal_engine.core.knowledge_base import KnowledgeBase, default_knowledge_base
from proposal_engine.core.outcome import OutcomeConfig
from proposal_engine.core.providers import LLMBackend
from proposal_engine.services.backends import build_backend


@dataclass(frozen=True)
class EngineContext:
    """Corpus, knowledge base, backend and scoring constants built at startup."""

    corpus: HistoricalCorpus
    knowledge_base: KnowledgeBase
    backend: LLMBackend
    outcome_config: OutcomeConfig = OutcomeConfig()
    practices_top_k: int = 5


def build_engine_context(settings: Settings) -> EngineContext:
    """Load the corpus and wire the configured backend."""
    return EngineContext(
        corpus=load_historical_corpus(settings.HISTORICAL_CORPUS_PATH),
        knowledge_base=default_knowledge_base(),
        backend=build_backend(settings),
        outcome_config=OutcomeConfig(
            k=settings.OUTCOME_TOP_K,
            smoothing=settings.OUTCOME_SMOOTHING,
            threshold=settings.OUTCOME_THRESHOLD,
        ),
        practices_top_k=settings.PRACTICES_TOP_K,
    )
