"""
Multi-channel delivery of client notifications.

Email goes through Django's mail framework; SMS and WhatsApp chat go through
Twilio. A failed channel is logged and reported as False, never raised, so a
delivery problem can not undo a billing or contract operation.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils import timezone
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from api.providers import ProviderMode
from notifications.models import Notification

logger = logging.getLogger(__name__)


def format_currency(value: int, symbol: Optional[str] = None) -> str:
    """Format minor units as currency: 100000 -> 'R$ 1.000,00'."""
    if symbol is None:
        symbol = getattr(settings, 'CURRENCY_SYMBOL', 'R$')
    amount = Decimal(value) / 100
    # Swap separators to get 1.000,00 from 1,000.00
    formatted = f"{amount:,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{symbol} {formatted}"


def format_date(value) -> str:
    if hasattr(value, 'tzinfo') and value.tzinfo is not None:
        value = timezone.localtime(value)
    return value.strftime('%d/%m/%Y')


@dataclass(frozen=True)
class NotificationConfig:
    from_email: str = 'noreply@example.com'
    twilio_account_sid: str = ''
    twilio_auth_token: str = ''
    twilio_phone_number: str = ''
    twilio_whatsapp_number: str = ''
    mode: ProviderMode = ProviderMode.SIMULATED

    @classmethod
    def from_settings(cls):
        account_sid = getattr(settings, 'TWILIO_ACCOUNT_SID', '')
        auth_token = getattr(settings, 'TWILIO_AUTH_TOKEN', '')
        return cls(
            from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', cls.from_email),
            twilio_account_sid=account_sid,
            twilio_auth_token=auth_token,
            twilio_phone_number=getattr(settings, 'TWILIO_PHONE_NUMBER', ''),
            twilio_whatsapp_number=getattr(settings, 'TWILIO_WHATSAPP_NUMBER', ''),
            mode=ProviderMode.resolve(
                getattr(settings, 'NOTIFICATION_PROVIDER_MODE', ''),
                has_credentials=bool(account_sid and auth_token)
            ),
        )


@dataclass
class DispatchResult:
    """Per-channel delivery outcome, e.g. {'email': True, 'sms': False}."""
    channels: Dict[str, bool] = field(default_factory=dict)

    def __getitem__(self, channel):
        return self.channels[channel]

    def __contains__(self, channel):
        return channel in self.channels

    @property
    def any_sent(self) -> bool:
        return any(self.channels.values())


class NotificationDispatcher:
    """
    Sends reminders, payment confirmations and contract-signed messages.
    """

    def __init__(self, config: Optional[NotificationConfig] = None, twilio_client=None):
        self.config = config or NotificationConfig.from_settings()
        self.twilio_client = twilio_client

        if self.twilio_client is None and self.mode is ProviderMode.LIVE:
            self.twilio_client = TwilioClient(
                self.config.twilio_account_sid,
                self.config.twilio_auth_token
            )

    @property
    def mode(self) -> ProviderMode:
        return self.config.mode

    # Channels

    def send_email(self, to: str, subject: str, text: str, html: str) -> bool:
        try:
            msg = EmailMultiAlternatives(
                subject=subject,
                body=text,
                from_email=self.config.from_email,
                to=[to],
            )
            msg.attach_alternative(html, "text/html")
            msg.send(fail_silently=False)
        except Exception as e:
            logger.error(f"Error sending email to {to}: {e}")
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return True

    def send_sms(self, to: str, message: str) -> bool:
        return self._send_twilio(to, message, self.config.twilio_phone_number, 'SMS')

    def send_chat(self, to: str, message: str) -> bool:
        """WhatsApp message through Twilio."""
        return self._send_twilio(
            f"whatsapp:{to}",
            message,
            f"whatsapp:{self.config.twilio_whatsapp_number}",
            'WhatsApp'
        )

    def _send_twilio(self, to: str, message: str, from_number: str, label: str) -> bool:
        if self.mode is ProviderMode.SIMULATED:
            logger.warning(f"Twilio not configured, {label} not sent to {to}: {message}")
            return False

        try:
            message_obj = self.twilio_client.messages.create(
                body=message,
                from_=from_number,
                to=to
            )
        except TwilioRestException as e:
            logger.error(f"Twilio error sending {label}: {e.code} - {e.msg}")
            return False
        except Exception as e:
            logger.error(f"Error sending {label}: {e}")
            return False

        logger.info(f"{label} sent to {to[:12]}***: {message_obj.sid}")
        return True

    # Messages

    def send_reminder(self, client_name, client_email, client_phone, value, due_date, payment_url) -> DispatchResult:
        """Payment due reminder: email always, SMS and chat when a phone is known."""
        value_formatted = format_currency(value)
        due_formatted = format_date(due_date)
        days = getattr(settings, 'REMINDER_DAYS_BEFORE_DUE', 4)

        result = DispatchResult()
        result.channels['email'] = self.send_email(
            to=client_email,
            subject=f"Reminder: payment due in {days} days",
            text=(
                f"Hello, {client_name}! Your payment of {value_formatted} is due on "
                f"{due_formatted}. Pay here: {payment_url}"
            ),
            html=(
                f"<h2>Hello, {client_name}!</h2>"
                f"<p>This is a reminder that your payment of <strong>{value_formatted}</strong> "
                f"is due on <strong>{due_formatted}</strong>.</p>"
                f"<p><a href=\"{payment_url}\">Click here to pay</a></p>"
                f"<p>Thank you!</p>"
            ),
        )

        if client_phone:
            result.channels['sms'] = self.send_sms(
                client_phone,
                f"Reminder: payment of {value_formatted} due on {due_formatted}. Pay at: {payment_url}"
            )
            result.channels['chat'] = self.send_chat(
                client_phone,
                f"Hello, {client_name}! Your payment of {value_formatted} is due on "
                f"{due_formatted}. Pay at: {payment_url}"
            )

        return result

    def send_confirmation(self, client_name, client_email, client_phone, value, paid_at) -> DispatchResult:
        """Payment received: email always, SMS when a phone is known."""
        value_formatted = format_currency(value)
        paid_formatted = format_date(paid_at)

        result = DispatchResult()
        result.channels['email'] = self.send_email(
            to=client_email,
            subject="Payment confirmed!",
            text=(
                f"Hello, {client_name}! Payment of {value_formatted} confirmed on "
                f"{paid_formatted}. Thank you!"
            ),
            html=(
                f"<h2>Hello, {client_name}!</h2>"
                f"<p>We have received your payment of <strong>{value_formatted}</strong> "
                f"on <strong>{paid_formatted}</strong>.</p>"
                f"<p>Thank you!</p>"
            ),
        )

        if client_phone:
            result.channels['sms'] = self.send_sms(
                client_phone,
                f"Payment of {value_formatted} confirmed! Thank you."
            )

        return result

    def send_contract_signed(self, client_name, client_email, contract_description, pdf_url) -> DispatchResult:
        result = DispatchResult()
        result.channels['email'] = self.send_email(
            to=client_email,
            subject="Contract signed successfully!",
            text=(
                f"Hello, {client_name}! Contract {contract_description} signed. "
                f"Download: {pdf_url or ''}"
            ),
            html=(
                f"<h2>Hello, {client_name}!</h2>"
                f"<p>Your contract <strong>{contract_description}</strong> was signed successfully!</p>"
                f"<p><a href=\"{pdf_url or '#'}\">Download the signed contract</a></p>"
                f"<p>Thank you!</p>"
            ),
        )
        return result

    # Audit log

    @staticmethod
    def record(client, purpose, message, channel='email', invoice=None, status='sent'):
        """
        Append a Notification audit row.

        Args:
            client: Client who was notified
            purpose: reminder, confirmation or alert
            message: Short description of what was sent
            channel: email, sms or chat (default: email)
            invoice: Optional related Invoice
            status: sent or failed

        Returns:
            Notification instance
        """
        return Notification.objects.create(
            client=client,
            invoice=invoice,
            channel=channel,
            purpose=purpose,
            status=status,
            message=message,
            sent_at=timezone.now() if status == 'sent' else None,
        )


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(NotificationConfig.from_settings())
