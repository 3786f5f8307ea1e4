"""Pydantic models for Siigo API payloads and responses."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SiigoModel(BaseModel):
    """Base model that keeps unknown upstream fields."""

    model_config = ConfigDict(extra="allow")


# Authentication

class SiigoToken(SiigoModel):
    """Response of the credential exchange."""

    access_token: str = Field(..., min_length=1)
    expires_in: int = Field(..., gt=0, description="Token lifetime in seconds")
    token_type: Optional[str] = None
    scope: Optional[str] = None


# Shared references

class City(SiigoModel):
    country_code: str
    state_code: str
    city_code: str


class Address(SiigoModel):
    address: str
    city: City
    postal_code: Optional[str] = None


class DocumentRef(SiigoModel):
    id: int


class CustomerRef(SiigoModel):
    identification: str
    branch_office: Optional[int] = None


# Products

ProductType = Literal["Product", "Service", "ConsumerGood"]
TaxClassification = Literal["Taxed", "Exempt", "Excluded"]


class ProductIn(SiigoModel):
    code: str
    name: str
    account_group: int
    type: Optional[ProductType] = None
    stock_control: Optional[bool] = None
    active: Optional[bool] = None
    tax_classification: Optional[TaxClassification] = None
    tax_included: Optional[bool] = None
    tax_consumption_value: Optional[float] = None
    taxes: Optional[List[Dict[str, Any]]] = None
    prices: Optional[List[Dict[str, Any]]] = None
    unit: Optional[str] = None
    unit_label: Optional[str] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    additional_fields: Optional[Dict[str, Any]] = None


class ProductPatch(SiigoModel):
    """Partial product; forwarded verbatim, upstream decides on omitted fields."""

    code: Optional[str] = None
    name: Optional[str] = None
    account_group: Optional[int] = None
    type: Optional[ProductType] = None
    stock_control: Optional[bool] = None
    active: Optional[bool] = None
    tax_classification: Optional[TaxClassification] = None
    tax_included: Optional[bool] = None
    unit: Optional[str] = None
    unit_label: Optional[str] = None
    reference: Optional[str] = None
    description: Optional[str] = None


class AccountGroupIn(SiigoModel):
    code: str
    name: str


# Customers

PersonType = Literal["Person", "Company"]
CustomerType = Literal["Customer", "Supplier", "Other"]


class CustomerIn(SiigoModel):
    type: Optional[CustomerType] = None
    person_type: PersonType
    id_type: str
    identification: str
    check_digit: Optional[str] = None
    name: List[str] = Field(..., min_length=1)
    commercial_name: Optional[str] = None
    branch_office: Optional[int] = None
    active: Optional[bool] = None
    vat_responsible: Optional[bool] = None
    fiscal_responsibilities: Optional[List[Dict[str, Any]]] = None
    address: Address
    phones: List[Dict[str, Any]]
    contacts: List[Dict[str, Any]]
    comments: Optional[str] = None
    related_users: Optional[Dict[str, Any]] = None


class CustomerPatch(SiigoModel):
    type: Optional[CustomerType] = None
    person_type: Optional[PersonType] = None
    id_type: Optional[str] = None
    identification: Optional[str] = None
    name: Optional[List[str]] = None
    commercial_name: Optional[str] = None
    active: Optional[bool] = None
    address: Optional[Address] = None
    phones: Optional[List[Dict[str, Any]]] = None
    contacts: Optional[List[Dict[str, Any]]] = None
    comments: Optional[str] = None


# Sales documents

class InvoiceIn(SiigoModel):
    document: DocumentRef
    date: str
    customer: Dict[str, Any]
    cost_center: Optional[int] = None
    seller: int
    items: List[Dict[str, Any]] = Field(..., min_length=1)
    payments: List[Dict[str, Any]]
    stamp: Optional[Dict[str, Any]] = None
    mail: Optional[Dict[str, Any]] = None
    observations: Optional[str] = None


class InvoicePatch(SiigoModel):
    document: Optional[DocumentRef] = None
    date: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None
    cost_center: Optional[int] = None
    seller: Optional[int] = None
    items: Optional[List[Dict[str, Any]]] = None
    payments: Optional[List[Dict[str, Any]]] = None
    observations: Optional[str] = None


class InvoiceEmail(SiigoModel):
    mail_to: str = Field(..., min_length=3)
    copy_to: Optional[str] = None


class BatchInvoice(InvoiceIn):
    idempotency_key: str = Field(..., min_length=1)


class BatchInvoiceRequest(SiigoModel):
    notification_url: str = Field(..., min_length=1)
    invoices: List[BatchInvoice] = Field(..., min_length=1)


class QuotationIn(SiigoModel):
    document: DocumentRef
    date: str
    customer: Dict[str, Any]
    seller: int
    items: List[Dict[str, Any]] = Field(..., min_length=1)
    observations: Optional[str] = None


class QuotationPatch(SiigoModel):
    document: Optional[DocumentRef] = None
    date: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None
    seller: Optional[int] = None
    items: Optional[List[Dict[str, Any]]] = None
    observations: Optional[str] = None


# Purchases / payments

class PurchasePatch(SiigoModel):
    document: Optional[DocumentRef] = None
    date: Optional[str] = None
    supplier: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    payments: Optional[List[Dict[str, Any]]] = None
    observations: Optional[str] = None


class PaymentReceiptPatch(SiigoModel):
    document: Optional[DocumentRef] = None
    date: Optional[str] = None
    type: Optional[str] = None
    supplier: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    payment: Optional[Dict[str, Any]] = None
    observations: Optional[str] = None


# Webhooks

class WebhookIn(SiigoModel):
    url: str = Field(..., min_length=1)
    event: Optional[str] = None
    secret: Optional[str] = None
    active: Optional[bool] = None


class WebhookPatch(SiigoModel):
    id: Optional[str] = None
    url: Optional[str] = None
    event: Optional[str] = None
    secret: Optional[str] = None
    active: Optional[bool] = None


# Reports

class TrialBalanceParams(SiigoModel):
    account_start: Optional[str] = None
    account_end: Optional[str] = None
    year: int
    month_start: int = Field(..., ge=1, le=13)
    month_end: int = Field(..., ge=1, le=13)
    includes_tax_difference: bool


class TrialBalanceByThirdParams(TrialBalanceParams):
    customer: Optional[CustomerRef] = None
