import os

# Point settings at SQLite before importing weather_app (the engine is built at import time).
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("EMAIL_ENABLED", "false")
# Celery tasks run inline (eager) in tests.
os.environ["CELERY_BROKER_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weather_app.core.base import Base
from weather_app.core import config as app_config

# Import models so they register with SQLAlchemy metadata.
from weather_app.models.user import User  # noqa: F401
from weather_app.models.subscription import Subscription  # noqa: F401
from weather_app.models.token import Token  # noqa: F401

from weather_app.core.database import get_db
from weather_app.dependencies.services import get_mailer, get_weather_service, reset_service_singletons
from weather_app.services.email import EmailDeliveryError
from weather_app.services.subscriber_store import SubscriberStore
from weather_app.services.subscriptions import SubscriptionService
from weather_app.services.weather import CityNotFoundError, WeatherData


class FakeMailer:
    """Records outgoing mail; `fail_for` addresses raise EmailDeliveryError."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    def send(self, *, to_email: str, subject: str, html: str, text: str):
        if self.fail_all or to_email in self.fail_for:
            raise EmailDeliveryError(f"delivery to {to_email} failed")
        self.sent.append({"to": to_email, "subject": subject, "html": html, "text": text})
        return f"msg_{len(self.sent)}"


class FakeWeather:
    """City -> WeatherData map; unknown cities raise CityNotFoundError."""

    def __init__(self, data: dict | None = None):
        self.data: dict[str, WeatherData] = dict(data or {})
        self.calls: list[str] = []

    def get_weather(self, city: str) -> WeatherData:
        self.calls.append(city)
        if city not in self.data:
            raise CityNotFoundError(city)
        return self.data[city]


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # The in-memory DB persists across tests with StaticPool; reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests sometimes tweak global settings (app_config.settings.*). Restore them after
    each test, and drop cached service singletons built from the old values.
    """
    keys = [
        "PUBLIC_BASE_URL",
        "EMAIL_ENABLED",
        "EMAIL_PROVIDER",
        "FROM_EMAIL",
        "RESEND_API_KEY",
        "AWS_REGION",
        "DAILY_UPDATE_HOUR",
        "DISPATCH_BATCH_SIZE",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)
        reset_service_singletons()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def weather():
    return FakeWeather({"Kyiv": WeatherData(temperature=23.5, humidity=60, description="sunny")})


@pytest.fixture()
def store(db_session):
    return SubscriberStore(db_session)


@pytest.fixture()
def service(store, mailer):
    return SubscriptionService(store, mailer, base_url="https://weather.example.com")


@pytest.fixture()
def app(db_session, mailer, weather):
    from weather_app.main import app as fastapi_app

    app_config.settings.PUBLIC_BASE_URL = "https://weather.example.com"

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_mailer] = lambda: mailer
    fastapi_app.dependency_overrides[get_weather_service] = lambda: weather
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
