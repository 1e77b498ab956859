# core/i18n.py
"""
Languages, label tables and locale formatting for invoices and notifications

Hungarian is the primary language; English and German are secondary. Any
other language code falls back to the primary language.
"""

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from core.models import InvoiceStatus

PRIMARY_LANGUAGE = 'hu'
SUPPORTED_LANGUAGES = ('hu', 'en', 'de')


def resolve_language(language: Optional[str]) -> str:
    code = re.split(r'[-_]', (language or '').strip().lower())[0]
    return code if code in SUPPORTED_LANGUAGES else PRIMARY_LANGUAGE


MONTH_NAMES: Dict[str, tuple] = {
    'hu': ('január', 'február', 'március', 'április', 'május', 'június',
           'július', 'augusztus', 'szeptember', 'október', 'november', 'december'),
    'en': ('January', 'February', 'March', 'April', 'May', 'June',
           'July', 'August', 'September', 'October', 'November', 'December'),
    'de': ('Januar', 'Februar', 'März', 'April', 'Mai', 'Juni',
           'Juli', 'August', 'September', 'Oktober', 'November', 'Dezember'),
}

# (thousands separator, decimal separator)
NUMBER_SEPARATORS = {
    'hu': (' ', ','),
    'en': (',', '.'),
    'de': ('.', ','),
}


def format_date(value: Optional[date], language: str) -> str:
    """Long date form used in emails"""
    if value is None:
        return 'N/A'
    language = resolve_language(language)
    month = MONTH_NAMES[language][value.month - 1]
    if language == 'en':
        return f"{month} {value.day}, {value.year}"
    if language == 'de':
        return f"{value.day}. {month} {value.year}"
    return f"{value.year}. {month} {value.day}."


def format_short_date(value: Optional[date], language: str) -> str:
    """Numeric date form printed on the PDF document"""
    if value is None:
        return '-'
    language = resolve_language(language)
    if language == 'en':
        return value.strftime('%m/%d/%Y')
    if language == 'de':
        return value.strftime('%d.%m.%Y')
    return value.strftime('%Y. %m. %d.')


def format_amount(amount: Optional[Decimal], currency: str, language: str) -> str:
    """
    Localized amount with two decimals and the currency code as plain text

    e.g. ``1 500,00 EUR`` (hu), ``1,500.00 EUR`` (en), ``1.500,00 EUR`` (de)
    """
    thousands, decimal_mark = NUMBER_SEPARATORS[resolve_language(language)]
    value = Decimal(amount or 0).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if value < 0 else ''
    integer_part, fraction = f"{abs(value):.2f}".split('.')
    grouped = f"{int(integer_part):,}".replace(',', thousands)
    return f"{sign}{grouped}{decimal_mark}{fraction} {currency or 'EUR'}"


def format_plain_amount(amount: Optional[Decimal], currency: str) -> str:
    """Raw numeric value with the currency code appended, as stored"""
    if amount is None:
        amount = Decimal('0')
    return f"{amount} {currency or 'EUR'}"


def format_quantity(quantity: Decimal) -> str:
    if quantity == quantity.to_integral_value():
        return str(int(quantity))
    return str(quantity.normalize())


STATUS_LABELS: Dict[str, Dict[InvoiceStatus, str]] = {
    'hu': {
        InvoiceStatus.ISSUED: 'kiállítva',
        InvoiceStatus.PAID: 'fizetve',
        InvoiceStatus.OVERDUE: 'lejárt',
        InvoiceStatus.CANCELED: 'törölve',
    },
    'en': {
        InvoiceStatus.ISSUED: 'issued',
        InvoiceStatus.PAID: 'paid',
        InvoiceStatus.OVERDUE: 'overdue',
        InvoiceStatus.CANCELED: 'canceled',
    },
    'de': {
        InvoiceStatus.ISSUED: 'ausgestellt',
        InvoiceStatus.PAID: 'bezahlt',
        InvoiceStatus.OVERDUE: 'überfällig',
        InvoiceStatus.CANCELED: 'storniert',
    },
}


def status_label(status: InvoiceStatus, language: str) -> str:
    return STATUS_LABELS[resolve_language(language)][status]


# Labels printed on the PDF document
DOCUMENT_LABELS: Dict[str, Dict[str, str]] = {
    'hu': {
        'title': 'SZÁMLA',
        'number': 'Számlaszám',
        'issue_date': 'Kiállítás dátuma:',
        'due_date': 'Fizetési határidő:',
        'issuer': 'Kiállító:',
        'client': 'Vevő:',
        'tax_number': 'Adószám',
        'address': 'Cím',
        'country': 'Ország',
        'email': 'Email',
        'phone': 'Telefon',
        'col_description': 'Tétel',
        'col_quantity': 'Mennyiség',
        'col_unit_price': 'Egységár',
        'col_total': 'Összesen',
        'unnamed_item': 'Ismeretlen tétel',
        'no_items': 'Nincsenek tételek a számlán',
        'grand_total': 'Végösszeg:',
        'paid_amount': 'Fizetve:',
        'remaining': 'Fennmaradó összeg:',
        'payment_info': 'Fizetési információk',
        'bank_transfer': 'Banki átutalás:',
        'holder': 'Név',
        'reference': 'Közlemény',
        'payment_closing': 'A számla teljesítését elektronikusan igazoljuk. Köszönjük, hogy határidőre fizetnek.',
        'notes': 'Megjegyzések',
        'page': 'Oldal',
        'disclaimer': 'Ez a számla elektronikusan készült és érvényes aláírás nélkül is.',
        'watermark': 'FIZETVE',
        'filename_prefix': 'szamla',
    },
    'en': {
        'title': 'INVOICE',
        'number': 'Invoice number',
        'issue_date': 'Issue date:',
        'due_date': 'Due date:',
        'issuer': 'Issuer:',
        'client': 'Bill to:',
        'tax_number': 'Tax number',
        'address': 'Address',
        'country': 'Country',
        'email': 'Email',
        'phone': 'Phone',
        'col_description': 'Item',
        'col_quantity': 'Quantity',
        'col_unit_price': 'Unit price',
        'col_total': 'Total',
        'unnamed_item': 'Unnamed item',
        'no_items': 'This invoice has no items',
        'grand_total': 'Total:',
        'paid_amount': 'Paid:',
        'remaining': 'Remaining balance:',
        'payment_info': 'Payment information',
        'bank_transfer': 'Bank transfer:',
        'holder': 'Name',
        'reference': 'Reference',
        'payment_closing': 'Payment is confirmed electronically. Thank you for paying on time.',
        'notes': 'Notes',
        'page': 'Page',
        'disclaimer': 'This invoice was issued electronically and is valid without signature.',
        'watermark': 'PAID',
        'filename_prefix': 'invoice',
    },
    'de': {
        'title': 'RECHNUNG',
        'number': 'Rechnungsnummer',
        'issue_date': 'Ausstellungsdatum:',
        'due_date': 'Fälligkeitsdatum:',
        'issuer': 'Aussteller:',
        'client': 'Kunde:',
        'tax_number': 'Steuernummer',
        'address': 'Adresse',
        'country': 'Land',
        'email': 'E-Mail',
        'phone': 'Telefon',
        'col_description': 'Position',
        'col_quantity': 'Menge',
        'col_unit_price': 'Einzelpreis',
        'col_total': 'Gesamt',
        'unnamed_item': 'Unbenannte Position',
        'no_items': 'Diese Rechnung enthält keine Positionen',
        'grand_total': 'Gesamtbetrag:',
        'paid_amount': 'Bezahlt:',
        'remaining': 'Restbetrag:',
        'payment_info': 'Zahlungsinformationen',
        'bank_transfer': 'Banküberweisung:',
        'holder': 'Name',
        'reference': 'Verwendungszweck',
        'payment_closing': 'Der Zahlungseingang wird elektronisch bestätigt. Vielen Dank für die fristgerechte Zahlung.',
        'notes': 'Anmerkungen',
        'page': 'Seite',
        'disclaimer': 'Diese Rechnung wurde elektronisch erstellt und ist ohne Unterschrift gültig.',
        'watermark': 'BEZAHLT',
        'filename_prefix': 'rechnung',
    },
}


def document_labels(language: str) -> Dict[str, str]:
    return DOCUMENT_LABELS[resolve_language(language)]


# Labels used by the notification templates
EMAIL_LABELS: Dict[str, Dict[str, str]] = {
    'hu': {
        'greeting': 'Tisztelt {name}!',
        'invoice_subject': 'Új számla: {number} - {project}',
        'invoice_intro': 'Új számla készült az Ön részére a következő projekthez: {project}',
        'invoice_number': 'Számla száma',
        'issue_date': 'Kiállítás dátuma',
        'due_date': 'Fizetési határidő',
        'amount_due': 'Fizetendő összeg',
        'status': 'Státusz',
        'view_intro': 'A számla részleteit megtekintheti és letöltheti a projekt oldalán:',
        'view_invoice': 'Számla megtekintése',
        'invoice_help': 'Ha kérdése van a számlával kapcsolatban, kérjük, vegye fel a kapcsolatot velünk.',
        'reminder_subject_overdue': 'LEJÁRT: A(z) {number} számú számla fizetési határideje lejárt',
        'reminder_subject_due_soon': 'EMLÉKEZTETŐ: A(z) {number} számú számla fizetési határideje hamarosan lejár',
        'reminder_subject_new': 'Új számla kiállítva: {number}',
        'reminder_overdue': 'Ezúton szeretnénk emlékeztetni, hogy a(z) {number} számú számla fizetési határideje lejárt. A fizetési határidő {due} volt.',
        'reminder_due_soon': 'Ezúton szeretnénk emlékeztetni, hogy a(z) {number} számú számla fizetési határideje hamarosan lejár. A fizetési határidő: {due}.',
        'reminder_new': 'Új számlát állítottunk ki az Ön projektjéhez. A részleteket alább találja.',
        'payment_details': 'Fizetési adatok',
        'amount': 'Összeg',
        'payment_instructions': 'Fizetési útmutató',
        'bank_transfer': 'Banki átutalás',
        'reference': 'Közlemény',
        'vat_exempt': 'Alanyi adómentes a § 19 Abs. 1 UStG. szerint.',
        'thank_you': 'Köszönjük az együttműködést.',
        'share_subject': 'Megosztott projekt hozzáférés: {project}',
        'share_intro': '{sender} megosztott Önnel egy projektet az NB Studio rendszerében.',
        'project_name': 'Projekt neve',
        'share_access': 'Az alábbi linken és PIN kóddal férhet hozzá a projekthez:',
        'view_project': 'Projekt megtekintése',
        'pin': 'PIN kód',
        'valid_until': 'A hozzáférés érvényes: {date}-ig',
        'valid_forever': 'A hozzáférés korlátlan ideig érvényes.',
        'share_help': 'Ha kérdése van, kérjük, vegye fel a kapcsolatot velünk.',
        'regards': 'Üdvözlettel,',
        'automated': 'Ez egy automatikus értesítés. Kérjük, ne válaszoljon erre az e-mailre.',
    },
    'en': {
        'greeting': 'Dear {name},',
        'invoice_subject': 'New Invoice: {number} - {project}',
        'invoice_intro': 'A new invoice has been created for you regarding the project: {project}',
        'invoice_number': 'Invoice number',
        'issue_date': 'Issue date',
        'due_date': 'Due date',
        'amount_due': 'Amount due',
        'status': 'Status',
        'view_intro': 'You can view and download the invoice details on the project page:',
        'view_invoice': 'View Invoice',
        'invoice_help': 'If you have any questions about this invoice, please contact us.',
        'reminder_subject_overdue': 'OVERDUE: Invoice {number} payment is overdue',
        'reminder_subject_due_soon': 'REMINDER: Invoice {number} payment due soon',
        'reminder_subject_new': 'New invoice {number} has been issued',
        'reminder_overdue': 'This is a friendly reminder that the payment for invoice {number} is overdue. The payment was due on {due}.',
        'reminder_due_soon': 'This is a friendly reminder that the payment for invoice {number} is due soon. The payment is due on {due}.',
        'reminder_new': 'A new invoice has been issued for your project. Please find the details below.',
        'payment_details': 'Payment Details',
        'amount': 'Amount',
        'payment_instructions': 'Payment Instructions',
        'bank_transfer': 'Bank Transfer',
        'reference': 'Reference',
        'vat_exempt': 'VAT exempt according to § 19 Abs. 1 UStG.',
        'thank_you': 'Thank you for your business.',
        'share_subject': 'Shared project access: {project}',
        'share_intro': '{sender} has shared a project with you in the NB Studio system.',
        'project_name': 'Project name',
        'share_access': 'You can access the project using the following link and PIN code:',
        'view_project': 'View Project',
        'pin': 'PIN code',
        'valid_until': 'Access valid until: {date}',
        'valid_forever': 'Access is valid indefinitely.',
        'share_help': 'If you have any questions, please contact us.',
        'regards': 'Best regards,',
        'automated': 'This is an automated notification. Please do not reply to this email.',
    },
    'de': {
        'greeting': 'Sehr geehrte(r) {name},',
        'invoice_subject': 'Neue Rechnung: {number} - {project}',
        'invoice_intro': 'Eine neue Rechnung wurde für Sie erstellt für das Projekt: {project}',
        'invoice_number': 'Rechnungsnummer',
        'issue_date': 'Ausstellungsdatum',
        'due_date': 'Fälligkeitsdatum',
        'amount_due': 'Zu zahlender Betrag',
        'status': 'Status',
        'view_intro': 'Sie können die Rechnungsdetails auf der Projektseite einsehen und herunterladen:',
        'view_invoice': 'Rechnung ansehen',
        'invoice_help': 'Bei Fragen zu dieser Rechnung kontaktieren Sie uns bitte.',
        'reminder_subject_overdue': 'ÜBERFÄLLIG: Zahlung für Rechnung {number} ist überfällig',
        'reminder_subject_due_soon': 'ERINNERUNG: Zahlung für Rechnung {number} ist bald fällig',
        'reminder_subject_new': 'Neue Rechnung {number} wurde ausgestellt',
        'reminder_overdue': 'Dies ist eine freundliche Erinnerung, dass die Zahlung für die Rechnung {number} überfällig ist. Die Zahlung war fällig am {due}.',
        'reminder_due_soon': 'Dies ist eine freundliche Erinnerung, dass die Zahlung für die Rechnung {number} bald fällig ist. Die Zahlung ist fällig am {due}.',
        'reminder_new': 'Eine neue Rechnung wurde für Ihr Projekt ausgestellt. Die Details finden Sie unten.',
        'payment_details': 'Zahlungsdetails',
        'amount': 'Betrag',
        'payment_instructions': 'Zahlungsanweisungen',
        'bank_transfer': 'Banküberweisung',
        'reference': 'Verwendungszweck',
        'vat_exempt': 'Als Kleinunternehmer im Sinne von § 19 Abs. 1 UStG wird keine Umsatzsteuer berechnet.',
        'thank_you': 'Vielen Dank für Ihr Vertrauen.',
        'share_subject': 'Geteilter Projektzugang: {project}',
        'share_intro': '{sender} hat ein Projekt mit Ihnen im NB Studio-System geteilt.',
        'project_name': 'Projektname',
        'share_access': 'Sie können mit dem folgenden Link und PIN-Code auf das Projekt zugreifen:',
        'view_project': 'Projekt ansehen',
        'pin': 'PIN-Code',
        'valid_until': 'Zugang gültig bis: {date}',
        'valid_forever': 'Der Zugang ist unbegrenzt gültig.',
        'share_help': 'Bei Fragen kontaktieren Sie uns bitte.',
        'regards': 'Mit freundlichen Grüßen,',
        'automated': 'Dies ist eine automatische Benachrichtigung. Bitte antworten Sie nicht auf diese E-Mail.',
    },
}


def email_labels(language: str) -> Dict[str, str]:
    return EMAIL_LABELS[resolve_language(language)]
