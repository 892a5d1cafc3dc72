"""Record store gateways.

`create_gateway()` picks the implementation configured by RECORD_STORE.
"""

from loguru import logger

from hep_tracker.config.settings import settings
from hep_tracker.gateway.base import RecordGateway


def create_gateway() -> RecordGateway:
    """Build the record gateway selected in settings."""
    if settings.record_store == "airtable":
        from hep_tracker.gateway.airtable import AirtableGateway

        logger.info("Using hosted record store (Airtable)")
        return AirtableGateway.from_settings()

    from hep_tracker.db.session import init_db
    from hep_tracker.gateway.sql import SqlRecordGateway

    logger.info("Using SQL record store")
    init_db()
    return SqlRecordGateway()


__all__ = ["RecordGateway", "create_gateway"]
