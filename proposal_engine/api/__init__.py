"""API router for proposal endpoints."""

from fastapi import APIRouter

from proposal_engine.api import proposals

router = APIRouter()

# Proposal generation, outcome analysis and best-practice critique
router.include_router(proposals.router, tags=["proposals"])
