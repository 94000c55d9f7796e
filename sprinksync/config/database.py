"""Database configuration and initialization."""
import os
import logging
from typing import Dict, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base
from sprinksync.config.config import (
    DATABASE_PATH, DEFAULT_MAX_CONCURRENT_ZONES, DEFAULT_ZONE_DURATION,
    ZONE_GPIO_PINS, ZONE_NAME_PREFIX
)

logger = logging.getLogger(__name__)

# Ensure database directory exists
os.makedirs(os.path.dirname(DATABASE_PATH), exist_ok=True)

# Create database engine
DATABASE_URL = f'sqlite:///{DATABASE_PATH}'
engine = create_engine(DATABASE_URL, connect_args={'check_same_thread': False}, echo=False)

# Create session factory
SessionLocal = scoped_session(sessionmaker(autocommit=False, autoflush=False, bind=engine))

# Base class for models
Base = declarative_base()

MAX_CONCURRENT_ZONES_KEY = 'max_concurrent_zones'


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite only honours ON DELETE CASCADE with foreign keys switched on."""
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def seed_defaults(session, zone_pins: Optional[Dict[int, int]] = None):
    """Insert one zone per configured pin and the default safety settings."""
    from sprinksync.models import Zone, SystemConfig

    zone_pins = ZONE_GPIO_PINS if zone_pins is None else zone_pins

    if session.query(Zone).count() == 0:
        for zone_id, pin in sorted(zone_pins.items()):
            session.add(Zone(
                id=zone_id,
                name=f'{ZONE_NAME_PREFIX} {zone_id}',
                gpio_pin=pin,
                default_duration=DEFAULT_ZONE_DURATION
            ))
        logger.info(f"Seeded {len(zone_pins)} zone(s)")

    existing = session.query(SystemConfig).filter_by(key=MAX_CONCURRENT_ZONES_KEY).first()
    if not existing:
        session.add(SystemConfig(
            key=MAX_CONCURRENT_ZONES_KEY,
            value=str(DEFAULT_MAX_CONCURRENT_ZONES),
            description='Maximum number of zones allowed to run at the same time'
        ))

    session.commit()


def init_db(zone_pins: Optional[Dict[int, int]] = None, bind=None):
    """Initialize database by creating all tables and seeding defaults."""
    from sprinksync.models import (  # noqa: F401
        Zone, ZoneGroup, ZoneGroupMember, Schedule, HistoryRecord, SystemConfig
    )
    Base.metadata.create_all(bind=bind or engine)

    session = SessionLocal() if bind is None else sessionmaker(bind=bind)()
    try:
        seed_defaults(session, zone_pins)
    finally:
        session.close()


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
