"""
Shipment schemas (read-only view of billing and club state).
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ShipmentStateResponse(BaseModel):
    awb_no: str
    account_code: str
    run_no: Optional[str]
    payment_type: Optional[str]
    total_amt: Decimal
    is_hold: bool
    complete_data_lock: bool
    is_billed: bool
    billing_locked: bool
    bill_no: Optional[str]
    club_no: Optional[str]

    class Config:
        from_attributes = True
