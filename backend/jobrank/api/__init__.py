from fastapi import APIRouter
from jobrank.api import runs

api_router = APIRouter()
api_router.include_router(runs.router, tags=["runs"])
