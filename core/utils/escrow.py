"""
Escrow gateway: manual-capture holds on the payment provider.

Holds are authorized now and captured or cancelled later. Capture and cancel
are tolerant of double invocation: capturing an intent that already
succeeded, or cancelling one that is already cancelled, reports success.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests
from django.conf import settings

from ..exceptions import GatewayError
from ..shortcuts import load_from_setting

logger = logging.getLogger(__name__)

REQUIRES_CAPTURE = 'requires_capture'
SUCCEEDED = 'succeeded'
CANCELED = 'canceled'

UNEXPECTED_STATE = 'payment_intent_unexpected_state'


@dataclass(frozen=True)
class EscrowIntent:
    intent_id: str
    status: str
    amount: int
    currency: str = 'usd'
    client_secret: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_held(self):
        return self.status == REQUIRES_CAPTURE


class EscrowGateway:
    """Interface every escrow provider implements."""

    def authorize(self, amount: int, currency: str, metadata: dict = None,
                  payment_method: str = None) -> EscrowIntent:
        raise NotImplementedError

    def retrieve(self, intent_id: str) -> EscrowIntent:
        raise NotImplementedError

    def capture(self, intent_id: str) -> str:
        raise NotImplementedError

    def cancel(self, intent_id: str) -> str:
        raise NotImplementedError


class StripeEscrowGateway(EscrowGateway):

    def __init__(self, secret_key=None, api_base=None, api_version=None, timeout=None, session=None):
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        self.api_base = (api_base or settings.STRIPE_API_BASE).rstrip('/')
        self.api_version = api_version or settings.STRIPE_API_VERSION
        self.timeout = timeout or settings.STRIPE_TIMEOUT
        self.session = session or requests.Session()

    def authorize(self, amount, currency, metadata=None, payment_method=None):

        data = {
            'amount': amount,
            'currency': currency,
            'capture_method': 'manual',
        }
        if payment_method:
            data['payment_method'] = payment_method
            data['confirm'] = 'true'
            data['automatic_payment_methods[enabled]'] = 'true'
            data['automatic_payment_methods[allow_redirects]'] = 'never'
        else:
            data['automatic_payment_methods[enabled]'] = 'true'

        for key, value in (metadata or {}).items():
            data[f'metadata[{key}]'] = str(value)

        body = self._request('POST', '/payment_intents', data=data)
        intent = self._to_intent(body)
        logger.info("Authorized hold %s for %s %s (%s)", intent.intent_id, amount, currency, intent.status)
        return intent

    def retrieve(self, intent_id):

        return self._to_intent(self._request('GET', f'/payment_intents/{intent_id}'))

    def capture(self, intent_id):

        try:
            body = self._request('POST', f'/payment_intents/{intent_id}/capture',
                                 idempotency_key=_attempt_key('capture', intent_id))
        except GatewayError as e:
            if e.details.get('code') == UNEXPECTED_STATE and self.retrieve(intent_id).status == SUCCEEDED:
                logger.info("Hold %s was already captured", intent_id)
                return SUCCEEDED
            raise

        logger.info("Captured hold %s", intent_id)
        return body['status']

    def cancel(self, intent_id):

        try:
            body = self._request('POST', f'/payment_intents/{intent_id}/cancel',
                                 idempotency_key=_attempt_key('cancel', intent_id))
        except GatewayError as e:
            if e.details.get('code') == UNEXPECTED_STATE and self.retrieve(intent_id).status == CANCELED:
                logger.info("Hold %s was already cancelled", intent_id)
                return CANCELED
            raise

        logger.info("Cancelled hold %s", intent_id)
        return body['status']

    def _request(self, method, path, data=None, idempotency_key=None):

        headers = {
            'Authorization': f'Bearer {self.secret_key}',
            'Stripe-Version': self.api_version,
            'Accept': 'application/json',
        }
        if idempotency_key:
            headers['Idempotency-Key'] = idempotency_key

        try:
            r = self.session.request(method, f'{self.api_base}{path}', headers=headers, data=data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Escrow provider unreachable on %s %s: %s", method, path, e)
            raise GatewayError(f"Escrow provider unreachable: {e}") from e

        try:
            body = r.json()
        except ValueError as e:
            raise GatewayError(f"Escrow provider returned a non-JSON response ({r.status_code})") from e

        if r.status_code >= 400:
            error = body.get('error', {})
            details = {'code': error.get('code') or error.get('type') or str(r.status_code)}
            logger.error("Escrow provider rejected %s %s: %s", method, path, error.get('message'))
            raise GatewayError(error.get('message') or f"Escrow provider error ({r.status_code})", details)

        return body

    @staticmethod
    def _to_intent(body):

        return EscrowIntent(
            intent_id=body['id'],
            status=body['status'],
            amount=int(body['amount']),
            currency=body.get('currency', settings.ESCROW_CURRENCY),
            client_secret=body.get('client_secret'),
            metadata=dict(body.get('metadata') or {}),
        )


def _attempt_key(action, intent_id):
    """
    Idempotency key for one capture or cancel attempt.

    The provider replays the stored result of a key, errors included, so a
    retry after a failure needs a new key. Double invocation is covered by
    the unexpected-state check instead.
    """
    return f'{action}-{intent_id}-{uuid.uuid4().hex}'


def get_escrow_gateway() -> EscrowGateway:

    return load_from_setting('ESCROW_GATEWAY')
