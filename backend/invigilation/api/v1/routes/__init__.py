# backend/invigilation/api/v1/routes/__init__.py
from fastapi import APIRouter
from .coverage import router as coverage_router

router = APIRouter()

router.include_router(coverage_router, prefix="/coverage", tags=["Coverage"])
