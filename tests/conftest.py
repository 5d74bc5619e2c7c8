"""테스트 공통 fixture - in-memory SQLite, 데이터 팩토리, 가짜 Telegram 클라이언트."""

from collections.abc import Generator
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from reportbot import models  # noqa: F401
from reportbot.core.config import settings
from reportbot.core.database import Base
from reportbot.core.exceptions import DeliveryError
from reportbot.models import (
    AppSetting, DocumentPhoto, DocumentSubject, Loan, Location, PersonalData,
    ReportConfig, Route, TelegramUser, User,
)
from reportbot.services.telegram_service import SendResult

TZ = ZoneInfo("America/Mexico_City")


def local(*args) -> datetime:
    """Mexico City 기준 aware datetime."""
    return datetime(*args, tzinfo=TZ)


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch) -> None:
    """.env 값이 테스트에 섞이지 않도록 토큰 fallback을 비운다."""
    monkeypatch.setattr(settings, "telegram_bot_token", "")


@pytest.fixture
def engine():
    """테스트마다 새 in-memory DB."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def now() -> datetime:
    """2025-03-05 (수) 10:00 - 3월 첫 보고 주."""
    return local(2025, 3, 5, 10, 0)


class DataFactory:
    """테스트 데이터 생성 헬퍼 (생성 즉시 commit)."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def route(self, name: str = "Route A") -> Route:
        return self._save(Route(name=name))

    def location(self, name: str, route: Route | None = None) -> Location:
        return self._save(Location(name=name, route_id=route.id if route else None))

    def person(self, name: str, location: Location | None = None) -> PersonalData:
        return self._save(PersonalData(full_name=name, location_id=location.id if location else None))

    def loan(
        self,
        borrower: PersonalData,
        sign_date: datetime,
        route: Route | None = None,
        guarantors: tuple = (),
        requested: str = "1000",
        given: str = "900",
        finished_date: datetime | None = None,
    ) -> Loan:
        loan = Loan(
            borrower_id=borrower.id,
            route_id=route.id if route else None,
            sign_date=sign_date.replace(tzinfo=None),
            requested_amount=Decimal(requested),
            amount_given=Decimal(given),
            finished_date=finished_date.replace(tzinfo=None) if finished_date else None,
        )
        loan.collaterals = list(guarantors)
        return self._save(loan)

    def document(
        self,
        loan: Loan,
        document_type: str = "INE",
        subject: DocumentSubject = DocumentSubject.CLIENT,
        is_error: bool = False,
        is_missing: bool = False,
        description: str | None = None,
    ) -> DocumentPhoto:
        return self._save(DocumentPhoto(
            loan_id=loan.id,
            document_type=document_type,
            subject=subject,
            is_error=is_error,
            is_missing=is_missing,
            error_description=description,
        ))

    def user(self, name: str, chat_id: str | None = None, active: bool = True) -> User:
        user = self._save(User(name=name))
        if chat_id is not None:
            self._save(TelegramUser(chat_id=chat_id, username=name.lower(), is_active=active,
                                    platform_user_id=user.id))
        return user

    def config(
        self,
        name: str = "Weekly documents",
        report_type: str = "document_problems",
        recipients: tuple = (),
        routes: tuple = (),
        days: str = "monday",
        hour: int = 9,
        is_active: bool = True,
    ) -> ReportConfig:
        config = ReportConfig(
            name=name,
            report_type=report_type,
            schedule_days=days,
            schedule_hour=hour,
            is_active=is_active,
        )
        config.recipients = list(recipients)
        config.routes = list(routes)
        return self._save(config)

    def bot_token(self, token: str = "123:TEST") -> AppSetting:
        return self._save(AppSetting(key="telegram_bot_token", value=token, category="telegram"))


@pytest.fixture
def factory(db: Session) -> DataFactory:
    return DataFactory(db)


class FakeTelegram:
    """발송 호출을 기록하는 가짜 Telegram 서비스."""

    def __init__(self, failing_chats: dict | None = None):
        self.failing_chats = failing_chats or {}
        self.messages: list[tuple[str, str]] = []
        self.documents: list[tuple[str, str, str]] = []

    def _check(self, chat_id: str):
        error = self.failing_chats.get(chat_id)
        if error is not None:
            raise error

    def send_message(self, chat_id: str, text: str) -> SendResult:
        self._check(chat_id)
        self.messages.append((chat_id, text))
        return SendResult(chat_id=chat_id, success=True, message_id=1, attempts=1, response_time_ms=5)

    def send_document(self, chat_id: str, content: bytes, filename: str, caption: str = "") -> SendResult:
        self._check(chat_id)
        self.documents.append((chat_id, filename, caption))
        return SendResult(chat_id=chat_id, success=True, message_id=2, attempts=1, response_time_ms=9)


@pytest.fixture
def fake_telegram() -> FakeTelegram:
    return FakeTelegram()


def delivery_error(message: str = "network down") -> DeliveryError:
    return DeliveryError(message, last_error=RuntimeError(message), attempts=3)
