"""Shared pytest fixtures for testing."""
import pytest
import os
import tempfile
import shutil
from datetime import datetime, timedelta
from apscheduler.schedulers.background import BackgroundScheduler
from sprinksync.hardware.mock_gpio import MockGPIO
from sprinksync.hardware.valve_interface import RelayValveController
from sprinksync.system import IrrigationSystem

TEST_ZONE_PINS = {1: 17, 2: 27, 3: 22, 4: 23}

# A Wednesday
START_TIME = datetime(2024, 6, 5, 5, 58, 0)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0):
        self.now += timedelta(minutes=minutes, seconds=seconds)


class FakeTimer:
    """Timer handle that only fires when a test tells it to."""

    def __init__(self, delay, callback, args):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback(*self.args)


class FakeTimerFactory:
    """Drop-in for the threading.Timer based factory."""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback, *args):
        timer = FakeTimer(delay, callback, args)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def last(self):
        return self.timers[-1]


@pytest.fixture(scope='function')
def temp_db():
    """Create a temporary, seeded database for testing."""
    # Create temporary directory
    temp_dir = tempfile.mkdtemp()
    db_path = os.path.join(temp_dir, 'test_sprinksync.db')

    # Create new engine with test database
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker, scoped_session
    from sprinksync.config.database import init_db

    test_engine = create_engine(f'sqlite:///{db_path}', connect_args={'check_same_thread': False}, echo=False)
    TestSessionLocal = scoped_session(sessionmaker(autocommit=False, autoflush=False, bind=test_engine))

    # Initialize database tables and seed zones
    init_db(zone_pins=TEST_ZONE_PINS, bind=test_engine)

    # Create a custom get_db that uses test database
    def test_get_db():
        """Get test database session."""
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    yield test_get_db

    # Cleanup
    TestSessionLocal.remove()
    test_engine.dispose()
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def mock_gpio():
    """Create a mock GPIO instance."""
    return MockGPIO()


@pytest.fixture
def sleeps():
    """Records every sleep requested by the valve controller."""
    return []


@pytest.fixture
def valves(mock_gpio, sleeps):
    """Relay valve controller on mock GPIO that never actually sleeps."""
    return RelayValveController(mock_gpio, active_low=True, stabilization_delay=0.1, sleep=sleeps.append)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_timers():
    return FakeTimerFactory()


@pytest.fixture
def scheduler():
    """APScheduler started paused so cron jobs are registered but never fire."""
    sched = BackgroundScheduler(daemon=True, timezone='UTC')
    sched.start(paused=True)
    yield sched
    if sched.running:
        sched.shutdown(wait=False)


@pytest.fixture
def system(temp_db, valves, fake_clock, fake_timers, scheduler):
    """Irrigation system with hardware initialized and the engine not loaded."""
    irrigation_system = IrrigationSystem(
        db_session_factory=temp_db,
        zone_pins=TEST_ZONE_PINS,
        valves=valves,
        clock=fake_clock,
        timer_factory=fake_timers,
        scheduler=scheduler
    )
    irrigation_system.coordinator.initialize(TEST_ZONE_PINS)
    irrigation_system.started = True
    return irrigation_system


@pytest.fixture
def store(system):
    return system.store


@pytest.fixture
def history(system):
    return system.history


@pytest.fixture
def coordinator(system):
    return system.coordinator


@pytest.fixture
def sequencer(system):
    return system.sequencer


@pytest.fixture
def engine(system):
    return system.engine


@pytest.fixture
def app(system):
    """Create Flask app for testing."""
    from flask import Flask
    from flask_cors import CORS
    from sprinksync.api import EXTENSION_KEY, api_bp

    # Create a minimal Flask app for testing
    flask_app = Flask(__name__)
    CORS(flask_app)
    flask_app.config['TESTING'] = True
    flask_app.extensions[EXTENSION_KEY] = system
    flask_app.register_blueprint(api_bp)

    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
