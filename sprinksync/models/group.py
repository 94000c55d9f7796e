"""Zone group models."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sprinksync.config.database import Base


class ZoneGroup(Base):
    """An ordered collection of zones that run back-to-back."""
    __tablename__ = 'zone_groups'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    default_duration = Column(Integer, nullable=False, default=15)  # Minutes, per member
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    members = relationship(
        'ZoneGroupMember', back_populates='group',
        order_by='ZoneGroupMember.sequence_order',
        cascade='all, delete-orphan', passive_deletes=True
    )
    schedules = relationship('Schedule', back_populates='group', cascade='all', passive_deletes=True)

    def __repr__(self):
        return f"<ZoneGroup(id={self.id}, name={self.name}, members={len(self.members)})>"


class ZoneGroupMember(Base):
    """Membership of a zone in a group at a sequence position."""
    __tablename__ = 'zone_group_members'

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey('zone_groups.id', ondelete='CASCADE'), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey('zones.id', ondelete='CASCADE'), nullable=False, index=True)
    sequence_order = Column(Integer, nullable=False)

    group = relationship('ZoneGroup', back_populates='members')
    zone = relationship('Zone', back_populates='memberships')

    def __repr__(self):
        return f"<ZoneGroupMember(group={self.group_id}, zone={self.zone_id}, order={self.sequence_order})>"
