"""
User roles enumeration.

Roles are carried in the bearer token issued by the platform auth service.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Back-office supervisor, may do everything
        ACCOUNTS: Billing and payment staff (invoices, notes, receipts)
        OPERATIONS: Hub staff who build club batches for runs
    """
    ADMIN = "ADMIN"
    ACCOUNTS = "ACCOUNTS"
    OPERATIONS = "OPERATIONS"
