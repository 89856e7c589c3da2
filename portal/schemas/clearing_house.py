"""Clearing-house schemas: transactions, validations, negotiations, payments, audit log."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from portal.schemas.common import CamelModel, metadata_field

TransactionType = Literal[
    "DATA_EXCHANGE", "CONTRACT_EXECUTION", "SERVICE_SUBSCRIPTION", "LICENSE_PURCHASE"
]
TransactionStatus = Literal[
    "INITIATED",
    "PENDING_VALIDATION",
    "VALIDATING",
    "NEGOTIATING",
    "PENDING_APPROVAL",
    "APPROVED",
    "EXECUTING",
    "COMPLETED",
    "FAILED",
    "REJECTED",
    "CANCELLED",
]
Decision = Literal["APPROVE", "REJECT", "CONDITIONAL"]
ProposalType = Literal["INITIAL_OFFER", "COUNTER_OFFER", "AMENDMENT"]
ResponseType = Literal["ACCEPT", "REJECT", "COUNTER"]
PaymentStatus = Literal["PENDING", "PROCESSING", "COMPLETED", "FAILED", "REFUNDED"]


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class TransactionCreate(CamelModel):
    transaction_type: TransactionType
    initiator_id: str
    provider_id: str
    consumer_id: str
    contract_id: str | None = None
    request_id: str | None = None
    resource_id: str | None = None
    transaction_data: dict[str, Any] | None = None
    contract_terms: dict[str, Any] | None = None
    total_amount: float | None = Field(default=None, ge=0)
    currency: str | None = None
    billing_model: str | None = None
    priority: str = "NORMAL"
    required_approvals: int = Field(default=2, ge=1)
    compliance_level: str = "STANDARD"
    security_rating: str | None = None
    risk_score: float | None = None
    expected_completion: datetime | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class TransactionUpdate(CamelModel):
    status: TransactionStatus | None = None
    transaction_data: dict[str, Any] | None = None
    contract_terms: dict[str, Any] | None = None
    total_amount: float | None = Field(default=None, ge=0)
    currency: str | None = None
    billing_model: str | None = None
    priority: str | None = None
    required_approvals: int | None = Field(default=None, ge=1)
    compliance_level: str | None = None
    security_rating: str | None = None
    risk_score: float | None = None
    expected_completion: datetime | None = None
    expires_at: datetime | None = None
    error_details: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class TransactionOut(CamelModel):
    id: str
    client_id: str
    transaction_type: str
    initiator_id: str
    provider_id: str
    consumer_id: str
    contract_id: str | None = None
    request_id: str | None = None
    resource_id: str | None = None
    transaction_data: Any = None
    contract_terms: Any = None
    total_amount: float | None = None
    currency: str | None = None
    billing_model: str | None = None
    status: str
    priority: str
    required_approvals: int
    current_approvals: int
    compliance_level: str
    security_rating: str | None = None
    risk_score: float | None = None
    initiated_at: datetime
    expected_completion: datetime | None = None
    expires_at: datetime | None = None
    completed_at: datetime | None = None
    error_details: Any = None
    metadata: Any = metadata_field()
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Validations
# ---------------------------------------------------------------------------

class ValidationCreate(CamelModel):
    validation_type: str = Field(min_length=1)
    validator_role: str = Field(min_length=1)
    validator_id: str
    decision: Decision
    reasoning: str | None = None
    conditions: list[Any] | dict[str, Any] | None = None
    validation_data: dict[str, Any] | None = None
    evidence_hash: str | None = None
    digital_signature: str | None = None


class ValidationOut(CamelModel):
    id: str
    transaction_id: str
    validation_type: str
    validator_role: str
    validator_id: str
    validation_data: Any = None
    evidence_hash: str | None = None
    digital_signature: str | None = None
    decision: str | None = None
    status: str
    reasoning: str | None = None
    conditions: Any = None
    requested_at: datetime
    responded_at: datetime | None = None
    expires_at: datetime | None = None


class ValidationResult(CamelModel):
    validation: ValidationOut
    transaction: TransactionOut


# ---------------------------------------------------------------------------
# Negotiations
# ---------------------------------------------------------------------------

class NegotiationCreate(CamelModel):
    transaction_id: str
    contract_id: str | None = None
    proposed_by_user_id: str
    proposal_type: ProposalType = "INITIAL_OFFER"
    proposed_terms: dict[str, Any] | None = None
    previous_terms: dict[str, Any] | None = None
    changes: list[Any] | dict[str, Any] | None = None
    proposed_price: float | None = Field(default=None, ge=0)
    payment_terms: str | None = None
    valid_until: datetime | None = None
    auto_accept: bool = False


class NegotiationRespond(CamelModel):
    response_type: ResponseType
    response_by_user_id: str
    response_notes: str | None = None
    counter_offer: dict[str, Any] | None = None


class NegotiationOut(CamelModel):
    id: str
    transaction_id: str
    contract_id: str | None = None
    round: int
    proposed_by_user_id: str
    proposal_type: str
    proposed_terms: Any = None
    previous_terms: Any = None
    changes: Any = None
    proposed_price: float | None = None
    payment_terms: str | None = None
    valid_until: datetime | None = None
    auto_accept: bool
    status: str
    response_by_user_id: str | None = None
    response_type: str | None = None
    response_notes: str | None = None
    counter_offer: Any = None
    proposed_at: datetime
    responded_at: datetime | None = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class PaymentCreate(CamelModel):
    transaction_id: str
    payment_type: str = Field(min_length=1)
    payment_method: str = Field(min_length=1)
    amount: float = Field(gt=0)
    currency: str = Field(min_length=1)
    exchange_rate: float | None = Field(default=None, gt=0)
    payer_user_id: str
    payee_user_id: str
    payment_reference: str | None = None
    processing_fee: float | None = Field(default=None, ge=0)
    brokerage_fee: float | None = Field(default=None, ge=0)
    network_fee: float | None = Field(default=None, ge=0)


class PaymentStatusUpdate(CamelModel):
    status: PaymentStatus
    gateway_transaction_id: str | None = None
    gateway_response: dict[str, Any] | None = None
    error_details: dict[str, Any] | None = None


class PaymentOut(CamelModel):
    id: str
    transaction_id: str
    payment_type: str
    payment_method: str
    amount: float
    currency: str
    exchange_rate: float | None = None
    payer_user_id: str
    payee_user_id: str
    payment_reference: str | None = None
    processing_fee: float | None = None
    brokerage_fee: float | None = None
    network_fee: float | None = None
    total_fees: float | None = None
    status: str
    gateway_transaction_id: str | None = None
    gateway_response: Any = None
    payment_hash: str | None = None
    requested_at: datetime
    processed_at: datetime | None = None
    settled_at: datetime | None = None


# ---------------------------------------------------------------------------
# Audit log + detail + stats
# ---------------------------------------------------------------------------

class TransactionAuditLogOut(CamelModel):
    id: str
    transaction_id: str
    event_type: str
    event_description: str
    actor_user_id: str | None = None
    actor_ip_address: str | None = None
    previous_state: Any = None
    new_state: Any = None
    changed_fields: Any = None
    metadata: Any = metadata_field()
    error_details: Any = None
    integrity_hash: str
    timestamp: datetime


class TransactionDetail(TransactionOut):
    validations: list[ValidationOut] = []
    payments: list[PaymentOut] = []
    negotiations: list[NegotiationOut] = []
    audit_logs: list[TransactionAuditLogOut] = []


class TypeBreakdown(CamelModel):
    count: int
    total_value: float


class ClearingHouseStats(CamelModel):
    total_transactions: int
    pending_transactions: int
    completed_transactions: int
    failed_transactions: int
    total_value: float
    success_rate: float
    by_type: dict[str, TypeBreakdown]
    validations_by_status: dict[str, int]
    payments_by_status: dict[str, int]
    payments_by_method: dict[str, int]
