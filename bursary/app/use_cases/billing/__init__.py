"""Billing ledger use cases"""
from .create_invoice import CreateInvoice
from .create_cohort_invoices import CreateCohortInvoices
from .record_payment import RecordPayment
from .submit_claim import SubmitPaymentClaim
from .verify_claim import VerifyPaymentClaim
from .get_invoice import GetInvoice
from .delete_invoice import DeleteInvoice
from .get_student_balance import GetStudentBalance
from .get_outstanding_summary import GetOutstandingSummary
from .list_student_invoices import ListStudentInvoices
from .reconcile_invoices import ReconcileInvoiceLedger
from .dtos import (
    InvoiceItemInputDTO,
    CreateInvoiceCommandDTO,
    CohortTarget,
    CreateCohortInvoicesCommandDTO,
    RecordPaymentCommandDTO,
    SubmitClaimCommandDTO,
    VerifyClaimCommandDTO,
    InvoiceItemDTO,
    InvoiceSummaryDTO,
    InvoiceResponseDTO,
    PaymentDTO,
    InvoiceDetailDTO,
    PaymentResponseDTO,
    ClaimVerificationResponseDTO,
    BulkInvoiceFailureDTO,
    CohortInvoicesResponseDTO,
    StudentBalanceResponseDTO,
    OutstandingSummaryResponseDTO,
    StudentInvoicesResponseDTO,
    InvoiceDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "CreateInvoice",
    "CreateCohortInvoices",
    "RecordPayment",
    "SubmitPaymentClaim",
    "VerifyPaymentClaim",
    "GetInvoice",
    "DeleteInvoice",
    "GetStudentBalance",
    "GetOutstandingSummary",
    "ListStudentInvoices",
    "ReconcileInvoiceLedger",
    "InvoiceItemInputDTO",
    "CreateInvoiceCommandDTO",
    "CohortTarget",
    "CreateCohortInvoicesCommandDTO",
    "RecordPaymentCommandDTO",
    "SubmitClaimCommandDTO",
    "VerifyClaimCommandDTO",
    "InvoiceItemDTO",
    "InvoiceSummaryDTO",
    "InvoiceResponseDTO",
    "PaymentDTO",
    "InvoiceDetailDTO",
    "PaymentResponseDTO",
    "ClaimVerificationResponseDTO",
    "BulkInvoiceFailureDTO",
    "CohortInvoicesResponseDTO",
    "StudentBalanceResponseDTO",
    "OutstandingSummaryResponseDTO",
    "StudentInvoicesResponseDTO",
    "InvoiceDiscrepancyDTO",
    "ReconciliationResultDTO",
]
