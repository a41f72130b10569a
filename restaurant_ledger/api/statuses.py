"""
Status metadata endpoint
"""

from fastapi import APIRouter
from typing import Dict, List

from restaurant_ledger.models.status_display import StatusDisplay, display_catalog

router = APIRouter()


@router.get("/", response_model=Dict[str, List[StatusDisplay]])
async def list_statuses():
    """Labels and badge tones for every status, keyed by state machine"""
    return display_catalog()
