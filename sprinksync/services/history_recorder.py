"""History sink for zone activations."""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from sprinksync.models import HistoryRecord, HistoryStatus, TriggerType

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Append-only log of activations: begun at start, finalized at stop."""

    def __init__(self, db_session_factory: Callable):
        """
        Initialize the recorder.

        Args:
            db_session_factory: Generator function yielding a database session
        """
        self.db_session_factory = db_session_factory

    def begin_record(self, zone_id: int, start_time: datetime, trigger: TriggerType,
                     schedule_id: Optional[int] = None, group_id: Optional[int] = None) -> int:
        """
        Insert an open history record.

        Returns:
            ID of the new record
        """
        gen = self.db_session_factory()
        db = next(gen)
        try:
            record = HistoryRecord(
                zone_id=zone_id,
                start_time=start_time,
                trigger=trigger,
                schedule_id=schedule_id,
                group_id=group_id,
                status=HistoryStatus.RUNNING
            )
            db.add(record)
            db.commit()
            return record.id
        except Exception:
            db.rollback()
            raise
        finally:
            gen.close()

    def _close_record(self, record_id: int, end_time: datetime, duration: float,
                      status: HistoryStatus, notes: Optional[str] = None):
        gen = self.db_session_factory()
        db = next(gen)
        try:
            record = db.get(HistoryRecord, record_id)
            if record is None:
                logger.warning(f"History record {record_id} not found")
                return
            if record.end_time is not None:
                logger.warning(f"History record {record_id} already finalized")
                return
            record.end_time = end_time
            record.duration = duration
            record.status = status
            if notes:
                record.notes = notes
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            gen.close()

    def finalize_record(self, record_id: int, end_time: datetime, duration: float):
        """Set end time and actual duration on a running record."""
        self._close_record(record_id, end_time, duration, HistoryStatus.COMPLETED)

    def abort_record(self, record_id: int, end_time: datetime, reason: str):
        """Mark a record whose activation never took effect."""
        self._close_record(record_id, end_time, 0.0, HistoryStatus.ABORTED, notes=reason[:500])

    def list_records(self, zone_id: Optional[int] = None, limit: int = 100) -> List[Dict]:
        """Most recent records first."""
        gen = self.db_session_factory()
        db = next(gen)
        try:
            query = db.query(HistoryRecord)
            if zone_id is not None:
                query = query.filter_by(zone_id=zone_id)
            records = query.order_by(HistoryRecord.start_time.desc(), HistoryRecord.id.desc()).limit(limit).all()
            return [r.to_dict() for r in records]
        finally:
            gen.close()
