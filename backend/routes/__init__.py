"""
Routes package initialization.
Exports all route modules.
"""

from routes.bikes import router as bikes_router
from routes.stolen_records import router as stolen_records_router
from routes.theft_alerts import router as theft_alerts_router

__all__ = [
    "bikes_router",
    "stolen_records_router",
    "theft_alerts_router"
]
