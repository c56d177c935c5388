"""Load the static historical proposal corpus."""

import json
from pathlib import Path

from pydantic import ValidationError

from proposal_engine.core.errors import ConfigurationError
from proposal_engine.core.logging import get_logger
from proposal_engine.core.schemas_proposals import HistoricalProposal

logger = get_logger(__name__)

HistoricalCorpus = tuple[HistoricalProposal, ...]


def load_historical_corpus(path: str | Path) -> HistoricalCorpus:
    """
    Read and validate the historical proposals file.

    Args:
        path: JSON file holding a list of proposal records

    Returns:
        Immutable tuple of HistoricalProposal

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Historical corpus not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read historical corpus {path}: {e}") from e

    if not isinstance(raw, list):
        raise ConfigurationError(f"Historical corpus {path} must be a JSON list")

    try:
        corpus = tuple(HistoricalProposal.model_validate(record) for record in raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid record in historical corpus {path}: {e}") from e

    labelled = sum(1 for p in corpus if p.outcome is not None)
    logger.info(
        f"Loaded {len(corpus)} historical proposals ({labelled} labelled) from {path}",
        extra={"extra_data": {"count": len(corpus), "labelled": labelled}},
    )
    return corpus
