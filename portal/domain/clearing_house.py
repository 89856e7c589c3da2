"""SQLAlchemy ORM models for the clearing house.

A transaction moves through validation, negotiation and payment; every
step appends a row to transaction_audit_logs (never updated or deleted).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.clock import utcnow
from portal.db.base import Base
from portal.domain.mixins import TenantMixin, TimestampMixin, new_id


class ClearingHouseTransaction(Base, TenantMixin, TimestampMixin):
    __tablename__ = "clearing_house_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # "DATA_EXCHANGE" | "CONTRACT_EXECUTION" | "SERVICE_SUBSCRIPTION" | "LICENSE_PURCHASE"
    transaction_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # Parties
    initiator_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    provider_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    consumer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )

    # Subject (all optional)
    contract_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("contracts.id"), nullable=True
    )
    request_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("data_requests.id"), nullable=True
    )
    resource_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("resources.id"), nullable=True
    )
    transaction_data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    contract_terms: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Billing
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    billing_model: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Workflow
    status: Mapped[str] = mapped_column(String(30), default="INITIATED", nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(20), default="NORMAL", nullable=False)
    required_approvals: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    current_approvals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    compliance_level: Mapped[str] = mapped_column(String(30), default="STANDARD", nullable=False)
    security_rating: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    risk_score: Mapped[Optional[float]] = mapped_column(Numeric(5, 2), nullable=True)

    initiated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
    expected_completion: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    error_details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)


class TransactionValidation(Base, TenantMixin, TimestampMixin):
    __tablename__ = "transaction_validations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clearing_house_transactions.id"), nullable=False, index=True
    )
    validation_type: Mapped[str] = mapped_column(String(50), nullable=False)
    validator_role: Mapped[str] = mapped_column(String(50), nullable=False)
    validator_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    validation_data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    evidence_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    digital_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "APPROVE" | "REJECT" | "CONDITIONAL"
    decision: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    # "PENDING" | "APPROVED" | "REJECTED" | "CONDITIONAL"
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False, index=True)
    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    conditions: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ContractNegotiation(Base, TenantMixin, TimestampMixin):
    __tablename__ = "contract_negotiations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clearing_house_transactions.id"), nullable=False, index=True
    )
    contract_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("contracts.id"), nullable=True
    )
    round: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    proposed_by_user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    # "INITIAL_OFFER" | "COUNTER_OFFER" | "AMENDMENT"
    proposal_type: Mapped[str] = mapped_column(String(30), nullable=False)
    proposed_terms: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    previous_terms: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    changes: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    proposed_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    payment_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    valid_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    auto_accept: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # "OPEN" | "ACCEPTED" | "REJECTED" | "COUNTER_OFFERED" | "EXPIRED"
    status: Mapped[str] = mapped_column(String(20), default="OPEN", nullable=False, index=True)

    response_by_user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=True
    )
    # "ACCEPT" | "REJECT" | "COUNTER"
    response_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    response_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    counter_offer: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    proposed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TransactionPayment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "transaction_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clearing_house_transactions.id"), nullable=False, index=True
    )
    payment_type: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    exchange_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 6), nullable=True)
    payer_user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    payee_user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id"), nullable=False, index=True
    )
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    processing_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    brokerage_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    network_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    total_fees: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    # "PENDING" | "PROCESSING" | "COMPLETED" | "FAILED" | "REFUNDED"
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False, index=True)
    gateway_transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    gateway_response: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    payment_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    digital_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TransactionAuditLog(Base, TenantMixin):
    __tablename__ = "transaction_audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Plain reference: audit rows outlive soft-deleted transactions
    transaction_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    event_description: Mapped[str] = mapped_column(Text, nullable=False)
    actor_user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    actor_ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    previous_state: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    new_state: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    changed_fields: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    metadata_: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)
    error_details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    integrity_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
