"""
Financial Document Validator.

Pure validation and normalization of invoices, credit notes and debit notes.
Must run before any document is persisted or allowed to touch billing state
or the ledger.
"""

from decimal import Decimal, InvalidOperation

from freight_backend.app.core.exceptions import ValidationError
from freight_backend.app.domain.ledger.ledger_engine import to_money
from freight_backend.app.schemas.billing import FinancialDocumentIn

ZERO = Decimal("0.00")

TAX_FIELDS = ("sgst", "cgst", "igst")


def _money(field_name: str, value) -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("NON_FINITE_AMOUNT", f"{field_name} is not a number", {"field": field_name})
    if not amount.is_finite():
        raise ValidationError("NON_FINITE_AMOUNT", f"{field_name} must be finite", {"field": field_name})
    if amount < 0:
        raise ValidationError(
            "NEGATIVE_AMOUNT", f"{field_name} cannot be negative", {"field": field_name, "value": str(amount)}
        )
    return amount


def validate_document(doc: FinancialDocumentIn) -> FinancialDocumentIn:
    """
    Validate a submitted document and return a normalized copy.

    Rules, checked in order:
        MISSING_REFERENCE: blank document number or account, no lines, or a blank AWB
        DUPLICATE_LINE: the same AWB appears twice
        NON_FINITE_AMOUNT / NEGATIVE_AMOUNT: any amount, tax or line amount
        GST_REGIME_EXCLUSIVE: IGST together with SGST or CGST
        GST_SPLIT_UNEQUAL: SGST differs from CGST

    The submitted grand total is discarded and replaced by
    amount + SGST + CGST + IGST.

    Raises:
        ValidationError: naming the first rule the document breaks
    """
    if not doc.document_no or not doc.document_no.strip():
        raise ValidationError("MISSING_REFERENCE", "Document has no document number")
    if not doc.account_code or not doc.account_code.strip():
        raise ValidationError("MISSING_REFERENCE", "Document has no account code")
    if not doc.lines:
        raise ValidationError("MISSING_REFERENCE", "Document has no AWB lines")

    seen = set()
    lines = []
    for index, line in enumerate(doc.lines):
        awb_no = (line.awb_no or "").strip()
        if not awb_no:
            raise ValidationError("MISSING_REFERENCE", f"Line {index + 1} has no AWB number", {"line": index + 1})
        if awb_no in seen:
            raise ValidationError("DUPLICATE_LINE", f"AWB {awb_no} appears more than once", {"awb_no": awb_no})
        seen.add(awb_no)
        lines.append(line.model_copy(update={
            "awb_no": awb_no,
            "amount": _money(f"lines[{index}].amount", line.amount),
        }))

    amount = _money("amount", doc.amount)
    sgst, cgst, igst = (_money(name, getattr(doc, name)) for name in TAX_FIELDS)

    if igst > ZERO and (sgst > ZERO or cgst > ZERO):
        raise ValidationError(
            "GST_REGIME_EXCLUSIVE",
            "IGST cannot be used with SGST/CGST",
            {"sgst": str(sgst), "cgst": str(cgst), "igst": str(igst)}
        )
    if sgst != cgst:
        raise ValidationError(
            "GST_SPLIT_UNEQUAL",
            "SGST and CGST must be equal",
            {"sgst": str(sgst), "cgst": str(cgst)}
        )

    return doc.model_copy(update={
        "account_code": doc.account_code.strip(),
        "document_no": doc.document_no.strip(),
        "amount": amount,
        "sgst": sgst,
        "cgst": cgst,
        "igst": igst,
        "grand_total": amount + sgst + cgst + igst,
        "lines": lines,
    })
