"""
Scoring routes
"""
from fastapi import APIRouter, Depends

from feature_store.entities import FeatureVector, Transaction
from risk_scoring.api.schemas import ErrorResponse, ScoreResponse
from risk_scoring.routes.dependencies import get_container, get_pipeline
from risk_scoring.services.container import Container
from risk_scoring.services.scoring_pipeline import ScoringPipeline

score_router = APIRouter(tags=["scoring"])


@score_router.post(
    "/score",
    response_model=ScoreResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid transaction data"},
        503: {"model": ErrorResponse, "description": "Scoring failed"}
    }
)
async def score_transaction(
    transaction: Transaction,
    pipeline: ScoringPipeline = Depends(get_pipeline)
):
    """
    Score a single transaction

    Repeats within the cache TTL return the cached score.
    Scores above the fraud cutoff also create an alert.
    """
    result = await pipeline.process(transaction)
    return ScoreResponse(
        score=result.score,
        alert=result.alert,
        cache_hit=result.cache_hit,
        latency_ms=result.latency_ms,
        budget_exceeded=result.budget_exceeded,
        degraded_groups=result.degraded_groups
    )


@score_router.post("/features", response_model=FeatureVector)
async def extract_features(
    transaction: Transaction,
    container: Container = Depends(get_container)
):
    """Feature vector for a transaction, without scoring or side effects"""
    return await container.extractor.extract_features(transaction)
