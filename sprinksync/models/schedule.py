"""Recurring schedule model."""
import json
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sprinksync.config.database import Base


class Schedule(Base):
    """Model for a recurring activation targeting one zone or one group."""
    __tablename__ = 'schedules'
    __table_args__ = (
        CheckConstraint(
            '(zone_id IS NULL) != (group_id IS NULL)',
            name='ck_schedule_single_target'
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    zone_id = Column(Integer, ForeignKey('zones.id', ondelete='CASCADE'), nullable=True, index=True)
    group_id = Column(Integer, ForeignKey('zone_groups.id', ondelete='CASCADE'), nullable=True, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM, 24h
    duration = Column(Integer, nullable=False)  # Minutes
    days = Column(String(50), nullable=False)  # JSON list, 0=Sunday .. 6=Saturday
    enabled = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    zone = relationship('Zone', back_populates='schedules')
    group = relationship('ZoneGroup', back_populates='schedules')

    @property
    def day_list(self):
        """Days as a list of ints."""
        try:
            return json.loads(self.days)
        except (ValueError, TypeError):
            return []

    def __repr__(self):
        target = f"zone={self.zone_id}" if self.zone_id is not None else f"group={self.group_id}"
        return f"<Schedule(id={self.id}, {target}, time={self.start_time}, days={self.days}, enabled={self.enabled})>"
