from .flat_requests import router as flat_requests_router
from .flats import router as flats_router
from .monitoring import router as monitoring_router

__all__ = [
     "flat_requests_router",
     "flats_router",
     "monitoring_router",
]
