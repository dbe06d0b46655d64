"""
Plain-text service agreement built from a contract's terms.

The text is a starting point for the PDF that is later sent for signature.
"""
from django.conf import settings

from notifications.services.dispatcher import format_currency, format_date

PERIODICITY_LABELS = {
    'monthly': 'monthly',
    'quarterly': 'quarterly',
    'semiannual': 'every six months',
    'annual': 'yearly',
}

CONTRACT_TEMPLATE = """\
# SERVICE AGREEMENT

## 1. PARTIES

**CLIENT**: {client_name}{client_tax_id}

**PROVIDER**: {company_name}

## 2. SCOPE

The provider will deliver the following services: **{description}**.

## 3. FEES AND PAYMENT

The client will pay **{value}** per billing cycle, billed **{periodicity}**.
The first payment is due on {start_date}.

## 4. TERM

This agreement runs for **{duration_months} months**, from {start_date} to {end_date}.

## 5. CLIENT OBLIGATIONS

- Pay every invoice by its due date
- Provide the information needed to deliver the services
- Keep an open channel of communication with the provider

## 6. PROVIDER OBLIGATIONS

- Deliver the services with quality and professionalism
- Keep the client's information confidential
- Deliver the agreed reports

## 7. TERMINATION

Either party may terminate this agreement with {notice_days} days' written notice.

## 8. CONFIDENTIALITY

Both parties will keep confidential information private.

---

**Date**: ___/___/______

**CLIENT**: _________________________________

**PROVIDER**: _________________________________
"""


def render_contract_text(contract) -> str:
    """Fill the agreement template with the contract's client and terms."""
    client = contract.client
    return CONTRACT_TEMPLATE.format(
        client_name=client.name,
        client_tax_id=f" (tax id {client.tax_id})" if client.tax_id else '',
        company_name=getattr(settings, 'CONTRACT_COMPANY_NAME', '') or '[Company name]',
        description=contract.description,
        value=format_currency(contract.value),
        periodicity=PERIODICITY_LABELS[contract.periodicity],
        duration_months=contract.duration_months,
        start_date=format_date(contract.start_date),
        end_date=format_date(contract.end_date),
        notice_days=getattr(settings, 'CONTRACT_TERMINATION_NOTICE_DAYS', 30),
    )
