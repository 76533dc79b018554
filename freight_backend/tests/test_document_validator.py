"""
Financial Document Validator Tests.
"""

import pytest
from datetime import date
from decimal import Decimal

from freight_backend.app.core.exceptions import ValidationError
from freight_backend.app.domain.billing.document_validator import validate_document
from freight_backend.app.schemas.billing import FinancialDocumentIn, DocumentLineIn


def make_doc(**overrides):
    data = dict(
        document_no=" INV-1 ",
        account_code="CUST001",
        document_date=date(2024, 4, 10),
        amount=Decimal("100"),
        lines=[DocumentLineIn(awb_no="MPL1000001", amount=Decimal("100"))],
    )
    data.update(overrides)
    return FinancialDocumentIn(**data)


def test_igst_with_sgst_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(igst=Decimal("18"), sgst=Decimal("9")))

    assert exc_info.value.rule == "GST_REGIME_EXCLUSIVE"
    assert exc_info.value.error_code == "ERR_VALIDATION_GST_REGIME_EXCLUSIVE"
    assert exc_info.value.status_code == 422


def test_unequal_split_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(sgst=Decimal("9"), cgst=Decimal("8")))

    assert exc_info.value.rule == "GST_SPLIT_UNEQUAL"


def test_equal_split_accepted_and_total_recomputed():
    doc = validate_document(make_doc(sgst=Decimal("9"), cgst=Decimal("9"), grand_total=Decimal("1")))

    assert doc.grand_total == Decimal("118.00")
    assert doc.document_no == "INV-1"


def test_igst_only_accepted():
    doc = validate_document(make_doc(igst=Decimal("18")))

    assert doc.grand_total == Decimal("118.00")


@pytest.mark.parametrize("field", ["amount", "sgst", "igst"])
def test_negative_amounts_rejected(field):
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(**{field: Decimal("-1")}))

    assert exc_info.value.rule == "NEGATIVE_AMOUNT"
    assert exc_info.value.details["field"] == field


def test_negative_line_amount_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(lines=[DocumentLineIn(awb_no="MPL1000001", amount=Decimal("-5"))]))

    assert exc_info.value.rule == "NEGATIVE_AMOUNT"


def test_non_finite_amount_rejected():
    with pytest.raises(ValidationError) as exc_info:
        # model_copy skips pydantic's own inf/nan check
        validate_document(make_doc().model_copy(update={"amount": Decimal("Infinity")}))

    assert exc_info.value.rule == "NON_FINITE_AMOUNT"


def test_missing_lines_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(lines=[]))

    assert exc_info.value.rule == "MISSING_REFERENCE"


def test_blank_awb_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(lines=[DocumentLineIn(awb_no="  ", amount=Decimal("1"))]))

    assert exc_info.value.rule == "MISSING_REFERENCE"


def test_blank_document_no_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(document_no="   "))

    assert exc_info.value.rule == "MISSING_REFERENCE"


def test_duplicate_awb_rejected():
    lines = [
        DocumentLineIn(awb_no="MPL1000001", amount=Decimal("50")),
        DocumentLineIn(awb_no="MPL1000001 ", amount=Decimal("50")),
    ]
    with pytest.raises(ValidationError) as exc_info:
        validate_document(make_doc(lines=lines))

    assert exc_info.value.rule == "DUPLICATE_LINE"
    assert exc_info.value.details["awb_no"] == "MPL1000001"


def test_input_is_not_mutated():
    original = make_doc(sgst=Decimal("9"), cgst=Decimal("9"))

    validate_document(original)

    assert original.grand_total is None
    assert original.document_no == " INV-1 "
