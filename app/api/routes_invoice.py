import logging

from fastapi import APIRouter, Response, status

from app.api.dependencies import DbDep
from app.models import schemas
from app.models.tax_models import Invoice
from app.services.invoice_compliance import InvoiceService, get_invoice_designation, validate_trn

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_out(invoice: Invoice) -> schemas.InvoiceOut:
    return schemas.InvoiceOut(
        id=invoice.id,
        spa_id=invoice.spa_id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        booking_id=invoice.booking_id,
        issue_date=invoice.issue_date,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total_amount=invoice.total_amount,
        status=invoice.status,
        invoice_type=invoice.invoice_type,
        designation=get_invoice_designation(invoice.invoice_type),
        supplier_trn=invoice.supplier_trn,
        customer_trn=invoice.customer_trn,
        retention_date=invoice.retention_date,
    )


@router.post("", response_model=schemas.InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(data: schemas.InvoiceCreate, db: DbDep):
    """Issue an invoice; VAT-registered spas get an FTA tax invoice."""
    invoice = InvoiceService(db).create_invoice(
        spa_id=data.spa_id,
        customer_id=data.customer_id,
        subtotal=data.subtotal,
        tax_amount=data.tax_amount,
        total_amount=data.total_amount,
        booking_id=data.booking_id,
        payment_method=data.payment_method,
        notes=data.notes,
        issue_date=data.issue_date,
    )
    return _to_out(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: int, db: DbDep):
    """Delete an invoice unless it is still inside the 5-year FTA retention window."""
    InvoiceService(db).delete_invoice(invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/validate-trn", response_model=schemas.TRNValidationOut)
def check_trn(data: schemas.TRNValidationIn):
    result = validate_trn(data.trn)
    return schemas.TRNValidationOut(valid=result.valid, error=result.error)
