from fastapi import APIRouter

from citation_recency.api.v1.recency import router as recency_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(recency_router)
