"""Booking ledger repository - storage-level serialization of bookings per provider day"""

from datetime import date

from sqlalchemy.orm import Session

from ...models import BookingLedger


class LedgerRepository:
    """
    Each (provider, date) has one ledger row. A booking reads its version, runs the
    conflict check, then advances the version with a compare-and-swap; a writer that
    raced past the check finds the version moved and updates zero rows.
    """

    @staticmethod
    def read_version(db: Session, provider_id: int, day: date) -> int:
        """Current version, creating the row (version 0) on first use"""
        entry = (
            db.query(BookingLedger)
            .filter(BookingLedger.provider_id == provider_id, BookingLedger.date == day)
            .first()
        )
        if entry is not None:
            return entry.version

        # A concurrent first booking of the same day fails this insert on the unique key
        db.add(BookingLedger(provider_id=provider_id, date=day, version=0))
        db.flush()
        return 0

    @staticmethod
    def advance(db: Session, provider_id: int, day: date, expected_version: int) -> bool:
        updated = (
            db.query(BookingLedger)
            .filter(
                BookingLedger.provider_id == provider_id,
                BookingLedger.date == day,
                BookingLedger.version == expected_version,
            )
            .update({BookingLedger.version: expected_version + 1}, synchronize_session=False)
        )
        return updated == 1
