"""
Late-payment risk from a client's invoice history.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from django.utils import timezone

from api.exceptions import NotFoundError

from ..models import Invoice

logger = logging.getLogger(__name__)

HIGH_UNPAID_RATE = 20
MEDIUM_UNPAID_RATE = 10
MEDIUM_LATE_RATE = 30


@dataclass(frozen=True)
class PaymentRecord:
    due_date: object
    paid_at: object = None


@dataclass
class RiskAnalysis:
    risk: str
    score: int
    total: int = 0
    late: int = 0
    unpaid: int = 0
    reasons: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'risk': self.risk,
            'score': self.score,
            'total': self.total,
            'late': self.late,
            'unpaid': self.unpaid,
            'reasons': list(self.reasons),
        }


def analyze_payment_history(history: Iterable[PaymentRecord]) -> RiskAnalysis:
    """
    Score a payment history.

    More than 20% unpaid is high risk (score 30). More than 10% unpaid or
    more than 30% paid late is medium (score 60). Anything else is low (100).
    """
    history = list(history)
    total = len(history)
    late = sum(1 for record in history if record.paid_at and record.paid_at > record.due_date)
    unpaid = sum(1 for record in history if not record.paid_at)

    late_rate = late / total * 100 if total else 0
    unpaid_rate = unpaid / total * 100 if total else 0

    reasons = []
    if unpaid_rate > HIGH_UNPAID_RATE:
        risk, score = 'high', 30
        reasons.append(f"{unpaid_rate:.0f}% of invoices unpaid")
    elif unpaid_rate > MEDIUM_UNPAID_RATE or late_rate > MEDIUM_LATE_RATE:
        risk, score = 'medium', 60
        if unpaid_rate > MEDIUM_UNPAID_RATE:
            reasons.append(f"{unpaid_rate:.0f}% of invoices unpaid")
        if late_rate > MEDIUM_LATE_RATE:
            reasons.append(f"{late_rate:.0f}% of payments late")
    else:
        risk, score = 'low', 100
        reasons.append("Positive payment history")
        if late_rate > 0:
            reasons.append(f"Only {late_rate:.0f}% of payments late")

    return RiskAnalysis(risk=risk, score=score, total=total, late=late, unpaid=unpaid, reasons=reasons)


def analyze_client_risk(client_id, now=None) -> RiskAnalysis:
    """
    Risk analysis over every invoice of the client that is already due.

    Cancelled invoices and invoices not yet due are left out.
    """
    from clients.models import Client

    try:
        client = Client.objects.get(pk=client_id)
    except (Client.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Client {client_id} not found")

    now = now or timezone.now()
    invoices = (
        Invoice.objects
        .filter(subscription__contract__client=client, due_date__lte=now)
        .exclude(status='cancelled')
        .values_list('due_date', 'paid_at')
    )
    analysis = analyze_payment_history(PaymentRecord(due_date, paid_at) for due_date, paid_at in invoices)

    logger.info(f"Payment risk for client {client.pk}: {analysis.risk} ({analysis.total} invoices)")
    return analysis
