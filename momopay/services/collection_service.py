from typing import Any, Dict, Optional

from flask import current_app

from momopay.providers import get_collection_client
from momopay.services.status_poller import PollPolicy, PollResult, StatusPoller
from momopay.utils.msisdn import normalize


class CollectionService:
    """Collection operations for the HTTP API and background tasks"""

    @staticmethod
    def initiate_collection(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit a request-to-pay

        Args:
            data: Loaded InitiateCollectionSchema payload

        Returns:
            Dict with the reference id and the canonical payer
        """
        client = get_collection_client()
        payer = normalize(data['payer'], data.get('country') or client.default_country)

        reference_id = client.request_to_pay(
            amount=data['amount'],
            currency=data['currency'],
            payer_raw=payer,
            external_id=data.get('external_id'),
            payer_message=data.get('payer_message'),
            payee_note=data.get('payee_note'),
            callback_url=data.get('callback_url'),
        )

        return {
            'reference_id': reference_id,
            'status': 'PENDING',
            'payer': payer.to_dict(),
        }

    @staticmethod
    def get_collection(reference_id: str) -> Dict[str, Any]:
        """Get the operator's current view of a request-to-pay"""
        return get_collection_client().get_transaction(reference_id).to_dict()

    @staticmethod
    def get_balance() -> Dict[str, Any]:
        """Get the collection account balance"""
        return get_collection_client().get_balance().to_dict()

    @staticmethod
    def poll_collection(reference_id: str, timeout: Optional[float] = None) -> PollResult:
        """
        Poll a request-to-pay to a terminal outcome with the app's policy

        Args:
            reference_id: Reference id returned on initiation
            timeout: Optional override of MOMO_POLL_TIMEOUT

        Returns:
            PollResult
        """
        poller = StatusPoller(get_collection_client(), PollPolicy.from_config(current_app.config))
        return poller.poll(reference_id, timeout=timeout)
