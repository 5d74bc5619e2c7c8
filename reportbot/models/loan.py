"""
대출 / 인적사항 / 서류 사진 모델 (외부 시스템이 작성, 파이프라인은 읽기 전용)
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Table, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base


class DocumentSubject(str, enum.Enum):
    """서류 소유자"""
    CLIENT = "CLIENT"
    GUARANTOR = "GUARANTOR"


class DocumentType(str, enum.Enum):
    """필수 서류 종류"""
    INE = "INE"
    DOMICILIO = "DOMICILIO"
    PAGARE = "PAGARE"


# 대출 ↔ 보증인 (id 순서가 보증인 순서)
loan_collaterals = Table(
    "loan_collaterals",
    Base.metadata,
    Column("loan_id", Integer, ForeignKey("loans.id", ondelete="CASCADE"), primary_key=True),
    Column("personal_data_id", Integer, ForeignKey("personal_data.id", ondelete="CASCADE"), primary_key=True),
)


class PersonalData(Base):
    """차주 / 보증인 인적사항"""
    __tablename__ = "personal_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    location_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )

    location = relationship("Location")

    def __repr__(self) -> str:
        return f"<PersonalData(id={self.id}, name={self.full_name})>"


class Loan(Base):
    """대출 테이블"""
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    borrower_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("personal_data.id", ondelete="SET NULL"), nullable=True
    )
    route_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("routes.id", ondelete="SET NULL"), nullable=True
    )

    # 금액
    requested_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    amount_given: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)

    # 일자
    sign_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    finished_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # 관계
    borrower = relationship("PersonalData", foreign_keys=[borrower_id])
    route = relationship("Route")
    collaterals: Mapped[list["PersonalData"]] = relationship(
        "PersonalData",
        secondary=loan_collaterals,
        order_by=PersonalData.id,
    )
    documents: Mapped[list["DocumentPhoto"]] = relationship(
        "DocumentPhoto", back_populates="loan", cascade="all, delete-orphan",
        order_by="DocumentPhoto.id",
    )

    @property
    def first_guarantor(self) -> PersonalData | None:
        return self.collaterals[0] if self.collaterals else None

    def __repr__(self) -> str:
        return f"<Loan(id={self.id}, sign_date={self.sign_date})>"


class DocumentPhoto(Base):
    """서류 사진 (오류/누락 플래그 포함)"""
    __tablename__ = "document_photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    loan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False
    )

    subject: Mapped[DocumentSubject] = mapped_column(
        Enum(DocumentSubject), default=DocumentSubject.CLIENT, nullable=False
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)

    is_error: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_missing: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    loan: Mapped["Loan"] = relationship("Loan", back_populates="documents")

    @property
    def has_problem(self) -> bool:
        return bool(self.is_error or self.is_missing)

    def __repr__(self) -> str:
        return f"<DocumentPhoto(id={self.id}, type={self.document_type}, subject={self.subject})>"
