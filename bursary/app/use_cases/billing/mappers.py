"""Entity → DTO conversions shared by the billing use cases"""

from typing import List, Optional
from bursary.domain.invoice import Invoice
from bursary.domain.invoice_item import InvoiceItem
from bursary.domain.money import to_money
from bursary.domain.payment import Payment
from .dtos import (
    InvoiceDetailDTO,
    InvoiceItemDTO,
    InvoiceResponseDTO,
    InvoiceSummaryDTO,
    PaymentDTO,
)


def to_invoice_summary(invoice: Invoice) -> InvoiceSummaryDTO:
    total_amount = to_money(invoice.total_amount)
    amount_paid = to_money(invoice.amount_paid)
    return InvoiceSummaryDTO(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        student_id=invoice.student_id,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        total_amount=total_amount,
        amount_paid=amount_paid,
        balance=total_amount - amount_paid,
        status=invoice.status.value,
    )


def to_item_dto(item: InvoiceItem) -> InvoiceItemDTO:
    return InvoiceItemDTO(
        item_id=item.id,
        description=item.description,
        amount=to_money(item.amount),
    )


def to_payment_dto(payment: Payment) -> PaymentDTO:
    return PaymentDTO(
        payment_id=payment.id,
        invoice_id=payment.invoice_id,
        amount=to_money(payment.amount_paid),
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        reference=payment.reference,
        status=payment.status.value,
        recorded_by=payment.recorded_by,
        verified_by=payment.verified_by,
        verified_at=payment.verified_at,
        created_at=payment.created_at,
    )


def to_invoice_response(invoice: Invoice, items: List[InvoiceItem]) -> InvoiceResponseDTO:
    return InvoiceResponseDTO(
        **to_invoice_summary(invoice).model_dump(),
        items=[to_item_dto(item) for item in items],
        created_at=invoice.created_at,
    )


def to_invoice_detail(
    invoice: Invoice,
    items: List[InvoiceItem],
    payments: Optional[List[Payment]] = None,
) -> InvoiceDetailDTO:
    return InvoiceDetailDTO(
        **to_invoice_summary(invoice).model_dump(),
        items=[to_item_dto(item) for item in items],
        created_at=invoice.created_at,
        payments=[to_payment_dto(payment) for payment in payments or []],
    )
