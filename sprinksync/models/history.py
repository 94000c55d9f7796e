"""Activation history model."""
import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sprinksync.config.database import Base


class TriggerType(enum.Enum):
    """Why an activation started."""
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    GROUP = "group"


class HistoryStatus(enum.Enum):
    """Lifecycle of a history record."""
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class HistoryRecord(Base):
    """Append-only record of one zone activation."""
    __tablename__ = 'history'

    id = Column(Integer, primary_key=True, index=True)
    zone_id = Column(Integer, ForeignKey('zones.id', ondelete='CASCADE'), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Float, nullable=True)  # Actual minutes
    trigger = Column(Enum(TriggerType), nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey('schedules.id', ondelete='SET NULL'), nullable=True)
    group_id = Column(Integer, ForeignKey('zone_groups.id', ondelete='SET NULL'), nullable=True)
    status = Column(Enum(HistoryStatus), nullable=False, default=HistoryStatus.RUNNING)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    zone = relationship('Zone', back_populates='history')

    def to_dict(self):
        """Convert model to dictionary"""
        return {
            'id': self.id,
            'zone_id': self.zone_id,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration': self.duration,
            'trigger': self.trigger.value,
            'schedule_id': self.schedule_id,
            'group_id': self.group_id,
            'status': self.status.value,
            'notes': self.notes
        }

    def __repr__(self):
        return f"<HistoryRecord(id={self.id}, zone={self.zone_id}, trigger={self.trigger.value}, status={self.status.value})>"
