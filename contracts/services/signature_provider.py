"""
Dropbox Sign API integration for contract signatures.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from dropbox_sign import ApiClient, ApiException, Configuration, apis, models

from api.exceptions import ExternalServiceError
from api.providers import ProviderMode, simulated_id

logger = logging.getLogger(__name__)

PROVIDER_NAME = 'signature'


@dataclass(frozen=True)
class SignatureProviderConfig:
    api_key: str = ''
    test_mode: bool = True
    mode: ProviderMode = ProviderMode.SIMULATED

    @classmethod
    def from_settings(cls):
        api_key = getattr(settings, 'SIGNATURE_PROVIDER_API_KEY', '')
        return cls(
            api_key=api_key,
            test_mode=getattr(settings, 'SIGNATURE_PROVIDER_TEST_MODE', True),
            mode=ProviderMode.resolve(
                getattr(settings, 'SIGNATURE_PROVIDER_MODE', ''),
                has_credentials=bool(api_key)
            ),
        )


@dataclass(frozen=True)
class Envelope:
    document_id: str
    envelope_id: str
    sign_url: str


@dataclass(frozen=True)
class EnvelopeStatus:
    status: str
    signed_at: Optional[datetime] = None


class SignatureProvider:
    """
    Creates and cancels signature envelopes with the client as sole signer.

    In SIMULATED mode no request leaves the process and identifiers are
    derived from the inputs.
    """

    def __init__(self, config: Optional[SignatureProviderConfig] = None, api_client=None):
        self.config = config or SignatureProviderConfig.from_settings()
        self.signature_request_api = None

        if self.mode is ProviderMode.LIVE:
            if not self.config.api_key and api_client is None:
                raise ImproperlyConfigured('SIGNATURE_PROVIDER_API_KEY is required in live mode')
            api_client = api_client or ApiClient(Configuration(username=self.config.api_key))
            self.signature_request_api = apis.SignatureRequestApi(api_client)

    @property
    def mode(self) -> ProviderMode:
        return self.config.mode

    def create_envelope(
        self,
        pdf_location: str,
        signer_name: str,
        signer_email: str,
        signer_tax_id: Optional[str] = None,
        title: Optional[str] = None
    ) -> Envelope:
        """
        Send a document for signature.

        Args:
            pdf_location: Public URL of the PDF to be signed
            signer_name: Name of the (sole) signer
            signer_email: Email of the signer
            signer_tax_id: Optional tax id, attached as request metadata
            title: Optional title shown to the signer

        Returns:
            Envelope with document_id, envelope_id and sign_url
        """
        if self.mode is ProviderMode.SIMULATED:
            logger.warning("Signature provider not configured, returning simulated envelope")
            envelope_id = simulated_id('env', pdf_location, signer_email)
            return Envelope(
                document_id=simulated_id('doc', pdf_location, signer_email),
                envelope_id=envelope_id,
                sign_url=f"https://signature.invalid/sign/{envelope_id}",
            )

        title = title or 'Service contract'
        extra = {'metadata': {'signer_tax_id': signer_tax_id}} if signer_tax_id else {}

        try:
            data = models.SignatureRequestSendRequest(
                title=title,
                subject=f"Please sign: {title}",
                message="Please review and sign this document.",
                signers=[
                    models.SubSignatureRequestSigner(
                        email_address=signer_email,
                        name=signer_name,
                        order=0
                    )
                ],
                file_urls=[pdf_location],
                test_mode=self.config.test_mode,
                **extra
            )
            response = self.signature_request_api.signature_request_send(data)
        except ApiException as e:
            logger.error(f"Signature provider error creating envelope: {e}")
            raise ExternalServiceError(f'Signature provider error: {e}', provider=PROVIDER_NAME)

        signature_request = response.signature_request
        signatures = signature_request.signatures or []
        envelope_id = signatures[0].signature_id if signatures else signature_request.signature_request_id
        sign_url = signature_request.signing_url or signature_request.details_url or ''

        logger.info(f"Signature request created: {signature_request.signature_request_id}")

        return Envelope(
            document_id=signature_request.signature_request_id,
            envelope_id=envelope_id,
            sign_url=sign_url,
        )

    def cancel_envelope(self, document_id: str) -> None:
        if self.mode is ProviderMode.SIMULATED:
            logger.warning(f"Signature provider not configured, skipping cancellation of {document_id}")
            return

        try:
            self.signature_request_api.signature_request_cancel(document_id)
        except ApiException as e:
            logger.error(f"Signature provider error cancelling {document_id}: {e}")
            raise ExternalServiceError(f'Signature provider error: {e}', provider=PROVIDER_NAME)

        logger.info(f"Signature request {document_id} cancelled")

    def get_status(self, document_id: str) -> EnvelopeStatus:
        """
        Get the signature status of a document.

        Returns:
            EnvelopeStatus with status in {pending, signed, cancelled}
        """
        if self.mode is ProviderMode.SIMULATED:
            return EnvelopeStatus(status='pending')

        try:
            response = self.signature_request_api.signature_request_get(document_id)
        except ApiException as e:
            logger.error(f"Signature provider error fetching {document_id}: {e}")
            raise ExternalServiceError(f'Signature provider error: {e}', provider=PROVIDER_NAME)

        signature_request = response.signature_request

        if signature_request.is_complete:
            signed_at = None
            signed_timestamps = [
                sig.signed_at for sig in (signature_request.signatures or [])
                if getattr(sig, 'signed_at', None)
            ]
            if signed_timestamps:
                signed_at = datetime.fromtimestamp(max(signed_timestamps), tz=dt_timezone.utc)
            return EnvelopeStatus(status='signed', signed_at=signed_at)

        if getattr(signature_request, 'is_declined', False):
            return EnvelopeStatus(status='cancelled')

        return EnvelopeStatus(status='pending')


def get_signature_provider() -> SignatureProvider:
    """Build the adapter from settings. Called at service construction."""
    return SignatureProvider(SignatureProviderConfig.from_settings())
