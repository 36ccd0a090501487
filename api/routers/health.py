"""Liveness endpoint for the webhook service."""

from fastapi import APIRouter

from api.config import service_config

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "healthy",
        "labels": [service_config.review_label, service_config.test_generation_label],
    }
