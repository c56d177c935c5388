"""Proposal generation and analysis endpoints."""

import logging
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Request

from proposal_engine.chains.analyze_outcome import analyze_outcome
from proposal_engine.chains.analyze_proposal import analyze_proposal
from proposal_engine.chains.generate_proposal import generate_proposal
from proposal_engine.core.engine_context import EngineContext
from proposal_engine.core.errors import ConfigurationError, ProposalEngineError
from proposal_engine.core.logging import get_logger, log_with_context
from proposal_engine.core.schemas_proposals import (
    AnalyzeOutcomeRequest,
    AnalyzeProposalRequest,
    FormattedProposal,
    GenerateProposalRequest,
    OutcomeEstimate,
    ProposalAnalysis,
)

logger = get_logger(__name__)

router = APIRouter()


def get_engine_context(request: Request) -> EngineContext:
    """Shared engine state built at startup."""
    context = getattr(request.app.state, "engine_context", None)
    if context is None:
        raise ConfigurationError("Engine context not initialised")
    return context


def _log_failure(msg: str, error: Exception, request_id: UUID) -> None:
    if isinstance(error, ProposalEngineError):
        log_with_context(
            logger,
            logging.ERROR,
            f"{msg}: {error}",
            request_id=request_id,
            error_kind=type(error).__name__,
            upstream_status=error.status,
        )
    else:
        logger.error(f"{msg}: {error}", exc_info=True, extra={"request_id": str(request_id)})


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/generate-proposal", response_model=FormattedProposal)
async def generate_proposal_endpoint(
    body: GenerateProposalRequest,
    context: EngineContext = Depends(get_engine_context),
) -> FormattedProposal:
    """Generate a sectioned business proposal for a client."""
    request_id = uuid4()
    log_with_context(
        logger,
        logging.INFO,
        f"Generating proposal for {body.client_name}",
        request_id=request_id,
        industry=body.industry or None,
    )

    try:
        return await generate_proposal(body, context)
    except ProposalEngineError as e:
        _log_failure("Error generating proposal", e, request_id)
        raise
    except Exception as e:
        _log_failure("Error generating proposal", e, request_id)
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/analyze-outcome", response_model=OutcomeEstimate)
async def analyze_outcome_endpoint(
    body: AnalyzeOutcomeRequest,
    context: EngineContext = Depends(get_engine_context),
) -> OutcomeEstimate:
    """Estimate the win probability of a proposal from similar past proposals."""
    request_id = uuid4()
    log_with_context(
        logger,
        logging.INFO,
        "Starting outcome analysis",
        request_id=request_id,
        corpus_size=len(context.corpus),
    )

    try:
        return await analyze_outcome(body, context)
    except ProposalEngineError as e:
        _log_failure("Error in outcome analysis", e, request_id)
        raise
    except Exception as e:
        _log_failure("Error in outcome analysis", e, request_id)
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/analyze-proposal", response_model=ProposalAnalysis)
async def analyze_proposal_endpoint(
    body: AnalyzeProposalRequest,
    context: EngineContext = Depends(get_engine_context),
) -> ProposalAnalysis:
    """Critique a proposal against the most relevant best practices."""
    request_id = uuid4()
    log_with_context(
        logger,
        logging.INFO,
        "Starting RAG analysis",
        request_id=request_id,
        text_length=len(body.proposal_text),
    )

    try:
        return await analyze_proposal(body.proposal_text, context)
    except ProposalEngineError as e:
        _log_failure("Error in RAG analysis", e, request_id)
        raise
    except Exception as e:
        _log_failure("Error in RAG analysis", e, request_id)
        raise HTTPException(status_code=500, detail=str(e)) from e
