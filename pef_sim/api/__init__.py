"""
API routes for the distribution simulator.
"""

from fastapi import APIRouter

from pef_sim.api import calculations

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
