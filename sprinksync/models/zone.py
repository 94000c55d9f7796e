"""Zone model."""
from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sprinksync.config.database import Base


class Zone(Base):
    """A controllable irrigation output wired to one relay pin."""
    __tablename__ = 'zones'

    id = Column(Integer, primary_key=True, autoincrement=False)  # Externally assigned
    name = Column(String(50), nullable=False)
    gpio_pin = Column(Integer, nullable=False, unique=True, index=True)
    default_duration = Column(Integer, nullable=False, default=15)  # Minutes
    total_runtime = Column(Float, nullable=False, default=0.0)  # Cumulative minutes
    last_run = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    schedules = relationship('Schedule', back_populates='zone', cascade='all', passive_deletes=True)
    history = relationship('HistoryRecord', back_populates='zone', cascade='all', passive_deletes=True)
    memberships = relationship('ZoneGroupMember', back_populates='zone', cascade='all', passive_deletes=True)

    def __repr__(self):
        return f"<Zone(id={self.id}, name={self.name}, gpio_pin={self.gpio_pin})>"
