"""Catalog of Siigo operations exposed as MCP tools.

Every tool is one ``Operation``: an HTTP method, a versioned path template
and the JSON schema of its arguments. ``SiigoClient.execute`` turns the
arguments of a call into path placeholders, query parameters and a body:

- ``path``: ``{placeholders}`` are filled from arguments of the same name
- ``query``: argument names forwarded as query parameters when given
- ``body``: the argument holding the JSON body, ``"*"`` to send every
  remaining argument as the body, or ``None`` for no body
- ``handler``: a client method that implements the operation itself
  (used by the two client-side searches)

Update operations forward the given partial object as-is. Whatever is left
out is for Siigo to keep or clear; nothing is merged locally.
"""

import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from mcp_server_siigo import models


@dataclass(frozen=True)
class Operation:
    name: str
    method: str
    path: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    body: Optional[str] = None
    query: Tuple[str, ...] = ()
    model: Optional[Type[BaseModel]] = None
    handler: Optional[str] = None
    read_only: bool = False
    destructive: bool = False

    @property
    def path_params(self) -> List[str]:
        return [name for _, name, _, _ in string.Formatter().parse(self.path) if name]

    def request_body(self, arguments: Dict[str, Any]) -> Any:
        if self.body == "*":
            excluded = set(self.path_params) | set(self.query)
            return {key: value for key, value in arguments.items() if key not in excluded and value is not None}
        if self.body:
            return arguments.get(self.body)
        return None


PAGING = {
    "page": {"type": "number", "description": "Page number"},
    "page_size": {"type": "number", "description": "Number of items per page (max 100)"},
}

DATE_RANGE = {
    "created_start": {"type": "string", "description": "Start date filter (YYYY-MM-DD)"},
    "created_end": {"type": "string", "description": "End date filter (YYYY-MM-DD)"},
}

REPORT_PARAMS = {
    "account_start": {"type": "string", "description": "Starting account code"},
    "account_end": {"type": "string", "description": "Ending account code"},
    "year": {"type": "number", "description": "Year"},
    "month_start": {"type": "number", "description": "Starting month (1-13)", "minimum": 1, "maximum": 13},
    "month_end": {"type": "number", "description": "Ending month (1-13)", "minimum": 1, "maximum": 13},
    "includes_tax_difference": {"type": "boolean", "description": "Include tax differences"},
}


def _schema(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _id(label: str) -> Dict[str, Any]:
    return _schema({"id": {"type": "string", "description": f"{label} ID"}}, ["id"])


def _payload(key: str, label: str, properties: Optional[Dict[str, Any]] = None,
             required: Optional[List[str]] = None) -> Dict[str, Any]:
    inner: Dict[str, Any] = {"type": "object", "description": f"{label} data"}
    if properties:
        inner["properties"] = properties
    if required:
        inner["required"] = required
    return _schema({key: inner}, [key])


def _id_and_payload(key: str, label: str) -> Dict[str, Any]:
    return _schema(
        {
            "id": {"type": "string", "description": f"{label} ID"},
            key: {"type": "object", "description": f"{label} fields to update; sent as given"},
        },
        ["id", key],
    )


def _crud(
    resource: str,
    plural: str,
    path: str,
    label: str,
    key: str,
    actions: Tuple[str, ...] = ("list", "get", "create", "update", "delete"),
    list_filters: Optional[Dict[str, Any]] = None,
    create_schema: Optional[Dict[str, Any]] = None,
    create_model: Optional[Type[BaseModel]] = None,
    update_model: Optional[Type[BaseModel]] = None,
) -> List[Operation]:
    """Build the standard list/get/create/update/delete operations of one collection."""
    ops: List[Operation] = []
    if "list" in actions:
        filters = {**PAGING, **(list_filters or {})}
        ops.append(Operation(
            name=f"siigo_get_{plural}",
            method="GET",
            path=path,
            description=f"Get list of {label.lower()}s from Siigo",
            input_schema=_schema(filters),
            query=tuple(filters),
            read_only=True,
        ))
    if "get" in actions:
        ops.append(Operation(
            name=f"siigo_get_{resource}",
            method="GET",
            path=f"{path}/{{id}}",
            description=f"Get a specific {label.lower()} by ID",
            input_schema=_id(label),
            read_only=True,
        ))
    if "create" in actions:
        ops.append(Operation(
            name=f"siigo_create_{resource}",
            method="POST",
            path=path,
            description=f"Create a new {label.lower()}",
            input_schema=create_schema or _payload(key, label),
            body=key,
            model=create_model,
        ))
    if "update" in actions:
        ops.append(Operation(
            name=f"siigo_update_{resource}",
            method="PUT",
            path=f"{path}/{{id}}",
            description=f"Update an existing {label.lower()}. The given fields are sent as-is; no merge with the stored {label.lower()} is done",
            input_schema=_id_and_payload(key, label),
            body=key,
            model=update_model,
            destructive=True,
        ))
    if "delete" in actions:
        ops.append(Operation(
            name=f"siigo_delete_{resource}",
            method="DELETE",
            path=f"{path}/{{id}}",
            description=f"Delete a {label.lower()}",
            input_schema=_id(label),
            destructive=True,
        ))
    return ops


def _catalog(name: str, path: str, description: str, filter_arg: Optional[Tuple[str, str]] = None) -> Operation:
    properties: Dict[str, Any] = {}
    if filter_arg:
        properties[filter_arg[0]] = {"type": "string", "description": filter_arg[1]}
    return Operation(
        name=f"siigo_get_{name}",
        method="GET",
        path=path,
        description=description,
        input_schema=_schema(properties),
        query=tuple(properties),
        read_only=True,
    )


PRODUCT_SCHEMA = _payload(
    "product",
    "Product",
    {
        "code": {"type": "string", "description": "Product code"},
        "name": {"type": "string", "description": "Product name"},
        "account_group": {"type": "number", "description": "Account group ID"},
        "type": {"type": "string", "enum": ["Product", "Service", "ConsumerGood"]},
        "stock_control": {"type": "boolean"},
        "active": {"type": "boolean"},
        "tax_classification": {"type": "string", "enum": ["Taxed", "Exempt", "Excluded"]},
        "tax_included": {"type": "boolean"},
        "unit": {"type": "string"},
        "unit_label": {"type": "string"},
        "reference": {"type": "string"},
        "description": {"type": "string"},
    },
    ["code", "name", "account_group"],
)

CUSTOMER_SCHEMA = _payload(
    "customer",
    "Customer",
    {
        "type": {"type": "string", "enum": ["Customer", "Supplier", "Other"]},
        "person_type": {"type": "string", "enum": ["Person", "Company"]},
        "id_type": {"type": "string", "description": "ID type code"},
        "identification": {"type": "string", "description": "Customer identification"},
        "name": {"type": "array", "items": {"type": "string"}, "description": "Customer names"},
        "commercial_name": {"type": "string"},
        "address": {
            "type": "object",
            "properties": {
                "address": {"type": "string"},
                "city": {
                    "type": "object",
                    "properties": {
                        "country_code": {"type": "string"},
                        "state_code": {"type": "string"},
                        "city_code": {"type": "string"},
                    },
                    "required": ["country_code", "state_code", "city_code"],
                },
            },
            "required": ["address", "city"],
        },
        "phones": {"type": "array", "items": {"type": "object"}},
        "contacts": {"type": "array", "items": {"type": "object"}},
    },
    ["person_type", "id_type", "identification", "name", "address", "phones", "contacts"],
)

INVOICE_PROPERTIES = {
    "document": {"type": "object", "properties": {"id": {"type": "number"}}, "required": ["id"]},
    "date": {"type": "string", "description": "Invoice date (YYYY-MM-DD)"},
    "customer": {"type": "object", "description": "Customer information"},
    "seller": {"type": "number", "description": "Seller ID"},
    "items": {"type": "array", "items": {"type": "object"}, "description": "Invoice items"},
    "payments": {"type": "array", "items": {"type": "object"}, "description": "Payment methods"},
    "observations": {"type": "string"},
}
INVOICE_REQUIRED = ["document", "date", "customer", "seller", "items", "payments"]

QUOTATION_SCHEMA = _payload(
    "quotation",
    "Quotation",
    {
        "document": {"type": "object", "properties": {"id": {"type": "number"}}, "required": ["id"]},
        "date": {"type": "string", "description": "Quotation date (YYYY-MM-DD)"},
        "customer": {"type": "object", "description": "Customer information"},
        "seller": {"type": "number", "description": "Seller ID"},
        "items": {"type": "array", "items": {"type": "object"}, "description": "Quoted items"},
        "observations": {"type": "string"},
    },
    ["document", "date", "customer", "seller", "items"],
)


OPERATIONS: List[Operation] = [
    # Products
    *_crud("product", "products", "/v1/products", "Product", "product",
           create_schema=PRODUCT_SCHEMA, create_model=models.ProductIn, update_model=models.ProductPatch),
    Operation(
        name="siigo_search_products",
        method="GET",
        path="/v1/products",
        description=(
            "Search products by code, name or reference (partial, case-insensitive). "
            "Filters apply to the requested page only; pagination.total_results is the number of matches on that page"
        ),
        input_schema=_schema({
            "code": {"type": "string", "description": "Search by product code (partial match)"},
            "name": {"type": "string", "description": "Search by product name (partial match)"},
            "reference": {"type": "string", "description": "Search by product reference (partial match)"},
            **PAGING,
        }),
        handler="search_products",
        read_only=True,
    ),

    # Account groups (inventory categories)
    _catalog("account_groups", "/v1/account-groups", "Get account groups catalog"),
    Operation(
        name="siigo_create_account_group",
        method="POST",
        path="/v1/account-groups",
        description="Create a new account group (inventory category)",
        input_schema=_payload(
            "account_group",
            "Account group",
            {"code": {"type": "string"}, "name": {"type": "string"}},
            ["code", "name"],
        ),
        body="account_group",
        model=models.AccountGroupIn,
    ),
    Operation(
        name="siigo_update_account_group",
        method="PUT",
        path="/v1/account-groups/{id}",
        description="Update an existing account group",
        input_schema=_schema(
            {
                "id": {"type": "number", "description": "Account group ID"},
                "account_group": {
                    "type": "object",
                    "properties": {"code": {"type": "string"}, "name": {"type": "string"}},
                    "required": ["code", "name"],
                },
            },
            ["id", "account_group"],
        ),
        body="account_group",
        model=models.AccountGroupIn,
        destructive=True,
    ),

    # Customers
    *_crud("customer", "customers", "/v1/customers", "Customer", "customer",
           actions=("list", "get", "create", "update"),
           list_filters={"type": {"type": "string", "description": "Customer type filter"}},
           create_schema=CUSTOMER_SCHEMA, create_model=models.CustomerIn, update_model=models.CustomerPatch),
    Operation(
        name="siigo_search_customers",
        method="GET",
        path="/v1/customers",
        description=(
            "Search customers by identification or name (partial, case-insensitive; name also matches the "
            "commercial name). Filters apply to the requested page only; pagination.total_results is the "
            "number of matches on that page"
        ),
        input_schema=_schema({
            "identification": {"type": "string", "description": "Search by customer identification number"},
            "name": {"type": "string", "description": "Search by customer name (partial match across all name fields)"},
            "type": {"type": "string", "enum": ["Customer", "Supplier", "Other"], "description": "Filter by customer type"},
            **PAGING,
        }),
        handler="search_customers",
        read_only=True,
    ),

    # Invoices
    *_crud("invoice", "invoices", "/v1/invoices", "Invoice", "invoice",
           list_filters=DATE_RANGE,
           create_schema=_payload("invoice", "Invoice", INVOICE_PROPERTIES, INVOICE_REQUIRED),
           create_model=models.InvoiceIn, update_model=models.InvoicePatch),
    Operation(
        name="siigo_annul_invoice",
        method="POST",
        path="/v1/invoices/{id}/annul",
        description="Annul an invoice",
        input_schema=_id("Invoice"),
        destructive=True,
    ),
    Operation(
        name="siigo_get_invoice_pdf",
        method="GET",
        path="/v1/invoices/{id}/pdf",
        description="Get invoice PDF (base64 encoded)",
        input_schema=_id("Invoice"),
        read_only=True,
    ),
    Operation(
        name="siigo_get_invoice_xml",
        method="GET",
        path="/v1/invoices/{id}/xml",
        description="Get electronic invoice XML (base64 encoded)",
        input_schema=_id("Invoice"),
        read_only=True,
    ),
    Operation(
        name="siigo_get_invoice_stamp_errors",
        method="GET",
        path="/v1/invoices/{id}/stamp/errors",
        description="Get the DIAN stamping errors of an electronic invoice",
        input_schema=_id("Invoice"),
        read_only=True,
    ),
    Operation(
        name="siigo_send_invoice_email",
        method="POST",
        path="/v1/invoices/{id}/mail",
        description="Send invoice by email",
        input_schema=_schema(
            {
                "id": {"type": "string", "description": "Invoice ID"},
                "mail_to": {"type": "string", "description": "Recipient email"},
                "copy_to": {"type": "string", "description": "CC emails (semicolon separated)"},
            },
            ["id", "mail_to"],
        ),
        body="*",
        model=models.InvoiceEmail,
    ),
    Operation(
        name="siigo_create_invoice_batch",
        method="POST",
        path="/v1/invoices/batch",
        description=(
            "Create invoices asynchronously in one batch. Each invoice needs an idempotency_key; "
            "results are posted to notification_url"
        ),
        input_schema=_schema(
            {
                "notification_url": {"type": "string", "description": "URL notified when the batch is processed"},
                "invoices": {
                    "type": "array",
                    "description": "Invoices to create",
                    "items": {
                        "type": "object",
                        "properties": {
                            "idempotency_key": {"type": "string", "description": "Unique key used by Siigo to skip repeated submissions"},
                            **INVOICE_PROPERTIES,
                        },
                        "required": ["idempotency_key", *INVOICE_REQUIRED],
                    },
                },
            },
            ["notification_url", "invoices"],
        ),
        body="*",
        model=models.BatchInvoiceRequest,
    ),

    # Quotations
    *_crud("quotation", "quotations", "/v1/quotations", "Quotation", "quotation",
           list_filters=DATE_RANGE, create_schema=QUOTATION_SCHEMA,
           create_model=models.QuotationIn, update_model=models.QuotationPatch),

    # Credit notes
    *_crud("credit_note", "credit_notes", "/v1/credit-notes", "Credit note", "credit_note",
           actions=("list", "get", "create")),
    Operation(
        name="siigo_get_credit_note_pdf",
        method="GET",
        path="/v1/credit-notes/{id}/pdf",
        description="Get credit note PDF (base64 encoded)",
        input_schema=_id("Credit note"),
        read_only=True,
    ),

    # Vouchers (cash receipts)
    *_crud("voucher", "vouchers", "/v1/vouchers", "Voucher", "voucher", actions=("list", "get", "create")),

    # Purchases
    *_crud("purchase", "purchases", "/v1/purchases", "Purchase", "purchase", update_model=models.PurchasePatch),

    # Payment receipts
    *_crud("payment_receipt", "payment_receipts", "/v1/payment-receipts", "Payment receipt", "payment_receipt",
           update_model=models.PaymentReceiptPatch),

    # Journals
    *_crud("journal", "journals", "/v1/journals", "Journal", "journal", actions=("list", "get", "create")),

    # Webhooks
    _catalog("webhooks", "/v1/webhooks", "Get registered webhooks"),
    Operation(
        name="siigo_create_webhook",
        method="POST",
        path="/v1/webhooks",
        description="Subscribe a URL to a Siigo event",
        input_schema=_payload(
            "webhook",
            "Webhook",
            {
                "url": {"type": "string", "description": "Callback URL"},
                "event": {"type": "string", "description": "Event topic"},
                "secret": {"type": "string"},
                "active": {"type": "boolean"},
            },
            ["url"],
        ),
        body="webhook",
        model=models.WebhookIn,
    ),
    Operation(
        name="siigo_update_webhook",
        method="PUT",
        path="/v1/webhooks",
        description="Update a webhook subscription (include its id in the webhook data)",
        input_schema=_payload("webhook", "Webhook"),
        body="webhook",
        model=models.WebhookPatch,
        destructive=True,
    ),
    Operation(
        name="siigo_delete_webhook",
        method="DELETE",
        path="/v1/webhooks/{id}",
        description="Delete a webhook subscription",
        input_schema=_id("Webhook"),
        destructive=True,
    ),

    # Catalogs
    _catalog("document_types", "/v1/document-types", "Get document types catalog",
             ("type", "Document type filter (FV, RC, NC, FC, CC, RP, C)")),
    _catalog("taxes", "/v1/taxes", "Get taxes catalog"),
    _catalog("payment_types", "/v1/payment-types", "Get payment types catalog",
             ("document_type", "Document type filter")),
    _catalog("cost_centers", "/v1/cost-centers", "Get cost centers catalog"),
    _catalog("users", "/v1/users", "Get users catalog"),
    _catalog("warehouses", "/v1/warehouses", "Get warehouses catalog"),
    _catalog("price_lists", "/v1/price-lists", "Get price lists catalog"),
    _catalog("cities", "/v1/cities", "Get cities catalog"),
    _catalog("id_types", "/v1/id-types", "Get ID types catalog"),
    _catalog("fiscal_responsibilities", "/v1/fiscal-responsibilities", "Get fiscal responsibilities catalog"),
    _catalog("fixed_assets", "/v1/fixed-assets", "Get fixed assets catalog"),

    # Reports (Siigo expects POST with a JSON body for both trial balances)
    Operation(
        name="siigo_get_trial_balance",
        method="POST",
        path="/v1/test-balance-report",
        description="Get trial balance report",
        input_schema=_schema(REPORT_PARAMS, ["year", "month_start", "month_end", "includes_tax_difference"]),
        body="*",
        model=models.TrialBalanceParams,
        read_only=True,
    ),
    Operation(
        name="siigo_get_trial_balance_by_third",
        method="POST",
        path="/v1/test-balance-report-by-thirdparty",
        description="Get trial balance by third party report",
        input_schema=_schema(
            {
                **REPORT_PARAMS,
                "customer": {
                    "type": "object",
                    "description": "Third party filter",
                    "properties": {
                        "identification": {"type": "string"},
                        "branch_office": {"type": "number"},
                    },
                    "required": ["identification"],
                },
            },
            ["year", "month_start", "month_end", "includes_tax_difference"],
        ),
        body="*",
        model=models.TrialBalanceByThirdParams,
        read_only=True,
    ),
    Operation(
        name="siigo_get_accounts_payable",
        method="GET",
        path="/v1/accounts-payable",
        description="Get accounts payable report",
        input_schema=_schema(dict(PAGING)),
        query=tuple(PAGING),
        read_only=True,
    ),
]

OPERATIONS_BY_NAME: Dict[str, Operation] = {op.name: op for op in OPERATIONS}


class UnknownOperationError(LookupError):
    """No operation is registered under the requested tool name."""


def get_operation(name: str) -> Operation:
    try:
        return OPERATIONS_BY_NAME[name]
    except KeyError:
        raise UnknownOperationError(f"Unknown tool: {name}") from None
