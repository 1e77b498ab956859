# core/models.py
"""
Invoice and Project records consumed by the document and notification services

The business-data layer owns these records; this module only parses the
payloads handed over by the caller into explicit types and rejects incomplete
data before any rendering starts.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when an input record is incomplete or malformed"""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__('; '.join(self.problems))


class InvoiceStatus(Enum):
    """Closed set of invoice states"""
    ISSUED = "issued"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELED = "canceled"

    @classmethod
    def parse(cls, value: Any) -> 'InvoiceStatus':
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower()
        try:
            return STATUS_ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown invoice status: {value!r}")

    @property
    def is_settled(self) -> bool:
        """Paid and canceled invoices need no payment instructions"""
        return self in (InvoiceStatus.PAID, InvoiceStatus.CANCELED)


# Localized spellings stored by the business layer
STATUS_ALIASES: Dict[str, InvoiceStatus] = {
    'issued': InvoiceStatus.ISSUED,
    'pending': InvoiceStatus.ISSUED,
    'kiállított': InvoiceStatus.ISSUED,
    'ausgestellt': InvoiceStatus.ISSUED,
    'paid': InvoiceStatus.PAID,
    'fizetett': InvoiceStatus.PAID,
    'bezahlt': InvoiceStatus.PAID,
    'overdue': InvoiceStatus.OVERDUE,
    'késedelmes': InvoiceStatus.OVERDUE,
    'überfällig': InvoiceStatus.OVERDUE,
    'canceled': InvoiceStatus.CANCELED,
    'cancelled': InvoiceStatus.CANCELED,
    'törölt': InvoiceStatus.CANCELED,
    'storniert': InvoiceStatus.CANCELED,
}


def _to_decimal(value: Any, field_name: str, problems: List[str],
                allow_negative: bool = True) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        problems.append(f"{field_name}: not a number")
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        problems.append(f"{field_name}: not a number ({value!r})")
        return None
    if not number.is_finite():
        problems.append(f"{field_name}: not a finite number")
        return None
    if not allow_negative and number < 0:
        problems.append(f"{field_name}: must not be negative")
        return None
    return number


def _to_date(value: Any, field_name: str, problems: List[str]) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        # Accept the 'Z' suffix produced by JavaScript's toISOString()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        if 'T' in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text[:10])
    except ValueError:
        problems.append(f"{field_name}: invalid date ({value!r})")
        return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class InvoiceItem:
    """One line of the invoice; total is rendered as given, never recomputed"""
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int, problems: List[str]) -> Optional['InvoiceItem']:
        prefix = f"items[{index}]"
        if not isinstance(data, dict):
            problems.append(f"{prefix}: expected an object")
            return None

        before = len(problems)
        quantity = _to_decimal(data.get('quantity'), f"{prefix}.quantity", problems, allow_negative=False)
        unit_price = _to_decimal(data.get('unitPrice', data.get('unit_price')),
                                 f"{prefix}.unitPrice", problems, allow_negative=False)
        total = _to_decimal(data.get('total'), f"{prefix}.total", problems)

        if quantity is None and not any(p.startswith(f"{prefix}.quantity") for p in problems):
            problems.append(f"{prefix}.quantity: required")
        if unit_price is None and not any(p.startswith(f"{prefix}.unitPrice") for p in problems):
            problems.append(f"{prefix}.unitPrice: required")
        if len(problems) != before:
            return None

        if total is None:
            total = quantity * unit_price

        return cls(
            description=_clean_text(data.get('description')) or '',
            quantity=quantity,
            unit_price=unit_price,
            total=total,
        )


@dataclass(frozen=True)
class Invoice:
    """Read-only invoice record"""
    number: str
    date: date
    due_date: date
    status: InvoiceStatus
    total_amount: Decimal
    items: List[InvoiceItem] = field(default_factory=list)
    paid_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None
    currency: str = 'EUR'
    notes: Optional[str] = None

    @property
    def is_partially_paid(self) -> bool:
        return bool(self.paid_amount) and self.paid_amount < self.total_amount

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - (self.paid_amount or Decimal('0'))

    @property
    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Invoice':
        """
        Build an Invoice from the HTTP/business payload (camelCase keys)

        Raises:
            ValidationError: listing every missing or malformed field
        """
        if not isinstance(data, dict):
            raise ValidationError(['invoice: expected an object'])

        problems: List[str] = []

        number = _clean_text(data.get('number'))
        if not number:
            problems.append('invoice.number: required')

        issue_date = _to_date(data.get('date'), 'invoice.date', problems)
        due_date = _to_date(data.get('dueDate', data.get('due_date')), 'invoice.dueDate', problems)
        paid_date = _to_date(data.get('paidDate', data.get('paid_date')), 'invoice.paidDate', problems)
        if due_date is None and not any(p.startswith('invoice.dueDate') for p in problems):
            problems.append('invoice.dueDate: required')
        if issue_date is None and not any(p.startswith('invoice.date') for p in problems):
            # The store defaults the issue date to the creation day
            issue_date = due_date

        status = None
        try:
            status = InvoiceStatus.parse(data.get('status') or 'issued')
        except ValueError as e:
            problems.append(f"invoice.status: {e}")

        raw_items = data.get('items') or []
        if not isinstance(raw_items, list):
            problems.append('invoice.items: expected a list')
            raw_items = []
        items = []
        for index, raw in enumerate(raw_items):
            item = InvoiceItem.from_dict(raw, index, problems)
            if item is not None:
                items.append(item)

        total_amount = _to_decimal(data.get('totalAmount', data.get('total_amount')),
                                   'invoice.totalAmount', problems)
        if total_amount is None and not any(p.startswith('invoice.totalAmount') for p in problems):
            problems.append('invoice.totalAmount: required')
        paid_amount = _to_decimal(data.get('paidAmount', data.get('paid_amount')),
                                  'invoice.paidAmount', problems, allow_negative=False)

        if problems:
            raise ValidationError(problems)

        return cls(
            number=number,
            date=issue_date,
            due_date=due_date,
            status=status,
            total_amount=total_amount,
            items=items,
            paid_date=paid_date,
            paid_amount=paid_amount,
            currency=_clean_text(data.get('currency')) or 'EUR',
            notes=_clean_text(data.get('notes')),
        )


@dataclass(frozen=True)
class ClientAddress:
    postal_code: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None
    country: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return bool(self.postal_code or self.city or self.street)

    def location_line(self) -> str:
        return f"{self.postal_code or ''} {self.city or ''}, {self.street or ''}".strip(' ,')


@dataclass(frozen=True)
class Client:
    name: str
    email: Optional[str] = None
    company_name: Optional[str] = None
    tax_number: Optional[str] = None
    address: Optional[ClientAddress] = None


@dataclass(frozen=True)
class Sharing:
    """Public access link of a project"""
    token: str
    expires_at: Optional[date] = None


@dataclass(frozen=True)
class Project:
    """Read-only project record"""
    name: str
    client: Client
    description: Optional[str] = None
    currency_override: Optional[str] = None
    sharing: Optional[Sharing] = None
    language: Optional[str] = None

    def display_currency(self, invoice: Optional[Invoice] = None) -> str:
        if self.currency_override:
            return self.currency_override
        if invoice is not None and invoice.currency:
            return invoice.currency
        return 'EUR'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        """
        Build a Project from the HTTP/business payload

        Raises:
            ValidationError: listing every missing or malformed field
        """
        if not isinstance(data, dict):
            raise ValidationError(['project: expected an object'])

        problems: List[str] = []

        name = _clean_text(data.get('name'))
        if not name:
            problems.append('project.name: required')

        raw_client = data.get('client')
        client = None
        if not isinstance(raw_client, dict):
            problems.append('project.client: required')
        else:
            client_name = _clean_text(raw_client.get('name'))
            if not client_name:
                problems.append('project.client.name: required')

            address = None
            raw_address = raw_client.get('address')
            if isinstance(raw_address, dict):
                address = ClientAddress(
                    postal_code=_clean_text(raw_address.get('postalCode', raw_address.get('postal_code'))),
                    city=_clean_text(raw_address.get('city')),
                    street=_clean_text(raw_address.get('street')),
                    country=_clean_text(raw_address.get('country')),
                )
            elif raw_address:
                address = ClientAddress(street=_clean_text(raw_address))

            client = Client(
                name=client_name or '',
                email=_clean_text(raw_client.get('email')),
                company_name=_clean_text(raw_client.get('companyName', raw_client.get('company_name'))),
                tax_number=_clean_text(raw_client.get('taxNumber', raw_client.get('tax_number'))),
                address=address,
            )

        sharing = None
        raw_sharing = data.get('sharing')
        if isinstance(raw_sharing, dict) and _clean_text(raw_sharing.get('token')):
            sharing = Sharing(
                token=_clean_text(raw_sharing.get('token')),
                expires_at=_to_date(raw_sharing.get('expiresAt', raw_sharing.get('expires_at')),
                                    'project.sharing.expiresAt', problems),
            )

        financial = data.get('financial') or {}
        currency_override = _clean_text(financial.get('currency')) if isinstance(financial, dict) else None

        if problems:
            raise ValidationError(problems)

        return cls(
            name=name,
            client=client,
            description=_clean_text(data.get('description')),
            currency_override=currency_override,
            sharing=sharing,
            language=_clean_text(data.get('language')),
        )
