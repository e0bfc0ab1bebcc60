from fastapi import APIRouter
from grassroutes.api.endpoints import content, pathway, progress, quiz, counter, donation, health

# Versioned API, mounted under settings.API_V1_STR
api_router = APIRouter()
api_router.include_router(content.router, tags=["content"])
api_router.include_router(pathway.router, prefix="/pathway", tags=["pathway"])
api_router.include_router(progress.router, prefix="/progress", tags=["progress"])
api_router.include_router(quiz.router, prefix="/quiz", tags=["quiz"])

# Paths the web client calls without a version prefix
public_router = APIRouter()
public_router.include_router(counter.router, prefix="/api/global-counter", tags=["global-counter"])
public_router.include_router(donation.router, tags=["donation"])
public_router.include_router(health.router, tags=["health"])
