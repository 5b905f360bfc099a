# Routes package __init__.py - re-exports routers for main.py convenience
from .capsules import router as capsules_router
from .progress import router as progress_router
from .transfer import router as transfer_router

__all__ = ['capsules_router', 'progress_router', 'transfer_router']
