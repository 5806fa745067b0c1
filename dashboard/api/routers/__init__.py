"""
dashboard/api/routers package marker.
"""

from dashboard.api.routers.analysis_router import router as analysis_router
from dashboard.api.routers.export_router import router as export_router

__all__ = [
    "analysis_router",
    "export_router",
]
