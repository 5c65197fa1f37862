import logging

from momopay import celery_app
from momopay.services.collection_service import CollectionService

logger = logging.getLogger(__name__)


@celery_app.task(name='poll_collection_task')
def poll_collection(reference_id: str) -> dict:
    """
    Poll a request-to-pay until it reaches a terminal outcome

    Args:
        reference_id (str): Reference id returned on initiation

    Returns:
        PollResult as a dict
    """
    result = CollectionService.poll_collection(reference_id)

    if result.state.value in ('TIMED_OUT', 'ABORTED'):
        logger.warning('Polling %s ended %s: %s', reference_id, result.state.value, result.reason or result.last_error)

    return result.to_dict()
