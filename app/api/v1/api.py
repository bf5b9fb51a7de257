"""API v1 router aggregation"""
from fastapi import APIRouter
from app.api.v1.endpoints import auth_endpoints, debug_endpoints

api_router = APIRouter()

api_router.include_router(auth_endpoints.router,  prefix="/auth",  tags=["Authentication"])
api_router.include_router(debug_endpoints.router, prefix="/debug", tags=["Debug"])
