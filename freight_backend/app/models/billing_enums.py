"""
Billing and ledger enumerations.
"""

import enum


class LedgerEntryKind(str, enum.Enum):
    """Ledger entry kind and its effect on the customer's balance."""
    CHARGE = "CHARGE"  # Shipment billed on an invoice (+)
    RECEIPT = "RECEIPT"  # Payment received from the customer (-)
    DEBIT = "DEBIT"  # Debit note or manual debit (+)
    CREDIT = "CREDIT"  # Credit note or manual credit (-)


class DocumentType(str, enum.Enum):
    """Financial document type."""
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"


class MutationOutcome(str, enum.Enum):
    """How much of a mutation was applied."""
    APPLIED = "APPLIED"  # Every step succeeded
    PARTIAL = "PARTIAL"  # Document persisted, some shipment steps failed
    REJECTED = "REJECTED"  # Nothing written


class PaymentMode(str, enum.Enum):
    """Payment instrument accepted at payment entry."""
    CASH = "Cash"
    CHEQUE = "Cheque"
    DD = "DD"
    RTGS = "RTGS"
    NEFT = "NEFT"
    IMPS = "IMPS"
    BANK = "Bank"
    DEMAND_DRAFT = "Demand Draft"
    OVERSEAS_COD = "Overseas (COD)"
    OTHERS = "Others"


class ReceiptType(str, enum.Enum):
    """Receipt classification chosen by the accounts clerk."""
    GENERAL_ENTRY = "General Entry"
    DEBIT_NOTE = "Debit Note"
    CREDIT_NOTE = "Credit Note"
    TDS = "TDS"
    RETURN = "Return"
    BAD_DEBTS = "Bad Debts"
    OTHER = "Other"


class AccountModeType(str, enum.Enum):
    """Customer billing mode. Only NORMAL customers post payment entries."""
    NORMAL = "NORMAL"
    CASH = "CASH"
    PREPAID = "PREPAID"
