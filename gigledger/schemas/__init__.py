"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from gigledger.modules.wallets.models import EntityKind, PromotionTag


class TokenData(BaseModel):
    user_id: str
    role: Optional[str] = None


class WalletSnapshotResponse(BaseModel):
    user_id: str
    balance: int
    last_action: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WalletTransactionResponse(BaseModel):
    id: str
    description: str
    tokens_in: int
    tokens_out: int
    created_at: datetime
    reference: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WalletTransactionListResponse(BaseModel):
    transactions: list[WalletTransactionResponse] = Field(default_factory=list)


class PromotionRequest(BaseModel):
    entity_kind: EntityKind
    entity_id: str = Field(..., min_length=1, max_length=36)
    plan: Literal["silver", "gold", "premium"]


class PromotionPlanResponse(BaseModel):
    name: str
    cost: int
    duration_days: int

    model_config = ConfigDict(from_attributes=True)


class PromotionPlanListResponse(BaseModel):
    application_cost: int
    plans: list[PromotionPlanResponse] = Field(default_factory=list)


class PromotionQuoteResponse(BaseModel):
    entity_id: str
    entity_kind: EntityKind
    plan: PromotionPlanResponse
    balance: int
    active: bool
    current_tag: PromotionTag
    current_expires_at: Optional[datetime] = None
    would_extend: bool
    requires_confirmation: bool
    allowed: bool
    affordable: bool
    new_expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PromotionResponse(BaseModel):
    entity_id: str
    entity_kind: EntityKind
    promotion_tag: PromotionTag
    promotion_expires_at: datetime
    extended: bool
    tokens_spent: int
    balance: int


class JobApplicationRequest(BaseModel):
    cover_letter: Optional[str] = Field(default=None, max_length=1500)
    bid_amount: Optional[int] = Field(default=None, ge=0)


class JobApplicationResponse(BaseModel):
    id: str
    job_id: str
    applicant_id: str
    tokens_spent: int
    balance: int
    created_at: datetime


class PaymentMetadata(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class PaymentData(BaseModel):
    amount: int
    reference: Optional[str] = Field(default=None, min_length=1, max_length=100)
    id: Optional[Union[int, str]] = None
    metadata: Optional[PaymentMetadata] = None

    model_config = ConfigDict(extra="allow")


class PaymentWebhookPayload(BaseModel):
    event: str
    data: PaymentData

    model_config = ConfigDict(extra="allow")


class PaymentWebhookResponse(BaseModel):
    status: str
    ledger_applied: bool
    reference: Optional[str] = None


class CheckoutRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in major currency units")
    email: str = Field(..., min_length=3, max_length=255)


class CheckoutResponse(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str


class ErrorResponse(BaseModel):
    code: str
    detail: str
    extra: dict[str, Any] = Field(default_factory=dict)


class WSMessage(BaseModel):
    type: str
    data: Optional[dict[str, Any]] = None
