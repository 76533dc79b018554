"""
Shipment API Endpoints.

Read-only view of a shipment's billing and club state.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.exceptions import ResourceNotFoundError
from freight_backend.app.core.guards import require_role, READ_ROLES
from freight_backend.app.db.session import get_db
from freight_backend.app.models.shipment import Shipment
from freight_backend.app.schemas.shipment import ShipmentStateResponse

router = APIRouter(prefix="/shipments", tags=["Shipments"])


@router.get("/{awb_no}", response_model=ShipmentStateResponse)
async def get_shipment_state(
    awb_no: str = Path(..., description="AWB number"),
    current_user: dict = Depends(require_role(READ_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Shipment).where(Shipment.awb_no == awb_no))
    shipment = result.scalar_one_or_none()
    if not shipment:
        raise ResourceNotFoundError("Shipment", awb_no)
    return shipment
