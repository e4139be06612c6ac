"""API v1 routes"""
from fastapi import APIRouter
from app.api.v1 import admin, files

api_router = APIRouter()

api_router.include_router(files.router)
api_router.include_router(admin.router)
