import logging
from sqlalchemy import (
    Table,
    MetaData,
    Column,
    String,
    Date,
    DateTime,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

# One row per (day, sample_id); a sample reappearing on another day is a new delivery
delivery_records = Table(
    "delivery_records",
    metadata,
    Column("day", Date, primary_key=True),
    Column("sample_id", String(255), primary_key=True),
    Column("delivered_at", DateTime(timezone=True), nullable=False),
)


def create_tables(engine):
    logger.info("Creating ledger tables")
    metadata.create_all(engine)
