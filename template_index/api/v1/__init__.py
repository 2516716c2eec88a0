"""
API v1 routes
"""
from fastapi import APIRouter
from template_index.api.v1 import templates

api_router = APIRouter(redirect_slashes=False)

api_router.include_router(templates.router, tags=["templates"])

__all__ = ["api_router"]
