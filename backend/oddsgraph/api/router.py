from fastapi import APIRouter

from oddsgraph.api.routes import health, odds_ingestion, sports_tools

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(odds_ingestion.router, prefix="/odds-ingestion", tags=["odds-ingestion"])
api_router.include_router(sports_tools.router, prefix="/sports-tools", tags=["sports-tools"])
