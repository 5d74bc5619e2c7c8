"""
서류 문제 집계 서비스
대출별 차주/보증인 서류 플래그(오류/누락)를 보고서 행으로 변환
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core.config import settings
from ..models.loan import Loan, PersonalData, DocumentPhoto, DocumentSubject, DocumentType
from .periods import shift_months

logger = logging.getLogger(__name__)

NO_LOCALITY = "No locality"
NO_ROUTE = "No route"
NO_NAME = "No name"

DOC_TYPES = [doc_type.value for doc_type in DocumentType]


@dataclass
class DocumentProblemRecord:
    """보고서 1행 (실행마다 새로 계산, 저장하지 않음)"""
    locality: str
    route_name: str
    client_name: str
    sign_date: datetime
    subject_type: DocumentSubject
    problem_descriptions: list[str] = field(default_factory=list)
    observations: str = ""
    # 요약/우선순위 계산용
    missing_types: list[str] = field(default_factory=list)
    error_types: list[str] = field(default_factory=list)

    @property
    def base_client_name(self) -> str:
        """보증인 행의 "(Guarantor: ...)" 접미사를 뗀 차주명"""
        return self.client_name.split(" (Guarantor:", 1)[0]

    @property
    def has_missing(self) -> bool:
        return bool(self.missing_types)

    @property
    def week_start(self) -> date:
        day = self.sign_date.date() if isinstance(self.sign_date, datetime) else self.sign_date
        return day - timedelta(days=day.weekday())


@dataclass
class WeekGroup:
    """월요일 기준 주 단위 그룹"""
    week_start: date
    records: list[DocumentProblemRecord]

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)


@dataclass
class ProblemSummary:
    """요약 페이지 통계"""
    total_rows: int = 0
    affected_clients: int = 0
    client_rows: int = 0
    guarantor_rows: int = 0
    route_count: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    by_locality: dict[str, int] = field(default_factory=dict)
    by_doc_type: dict[str, dict[str, int]] = field(default_factory=dict)


# ============================================================
# 데이터 조회
# ============================================================

def fetch_loans_with_documents(
    db: Session,
    route_ids: Iterable[int],
    since: datetime,
) -> list[Loan]:
    """since 이후 서명된 대출 조회 (라우트 필터가 비어 있으면 전체)"""
    route_ids = list(route_ids)
    # DB DateTime 컬럼은 naive로 저장됨
    since = since.replace(tzinfo=None)

    stmt = (
        select(Loan)
        .where(Loan.sign_date >= since)
        .options(
            selectinload(Loan.borrower).selectinload(PersonalData.location),
            selectinload(Loan.route),
            selectinload(Loan.collaterals).selectinload(PersonalData.location),
            selectinload(Loan.documents),
        )
        .order_by(Loan.id)
    )
    if route_ids:
        stmt = stmt.where(Loan.route_id.in_(route_ids))

    return list(db.execute(stmt).scalars().all())


# ============================================================
# 행 생성 (순수 함수)
# ============================================================

def _problem_documents(documents: list[DocumentPhoto], subject: DocumentSubject) -> list[DocumentPhoto]:
    return [doc for doc in documents if doc.subject == subject and doc.has_problem]


def _build_record(
    loan: Loan,
    subject: DocumentSubject,
    client_name: str,
    locality: str,
    route_name: str,
    flagged: list[DocumentPhoto],
) -> DocumentProblemRecord:
    descriptions = []
    missing_types = []
    error_types = []
    for doc in flagged:
        if doc.is_error:
            descriptions.append(f"{doc.document_type} with error")
            error_types.append(doc.document_type)
        if doc.is_missing:
            descriptions.append(f"{doc.document_type} missing")
            missing_types.append(doc.document_type)

    observations = "; ".join(
        doc.error_description for doc in flagged if doc.error_description
    )

    return DocumentProblemRecord(
        locality=locality,
        route_name=route_name,
        client_name=client_name,
        sign_date=loan.sign_date,
        subject_type=subject,
        problem_descriptions=descriptions,
        observations=observations,
        missing_types=missing_types,
        error_types=error_types,
    )


def build_problem_records(loans: Iterable[Loan]) -> list[DocumentProblemRecord]:
    """
    명시적으로 오류/누락 플래그가 있는 서류만 문제로 본다.
    - 차주 서류 중 1건 이상 문제 → CLIENT 행
    - 첫 번째 보증인 서류 중 1건 이상 문제 → GUARANTOR 행 (보증인이 없으면 생략)
    서류가 아예 없는 것은 문제가 아니다.
    """
    records: list[DocumentProblemRecord] = []

    for loan in loans:
        borrower = loan.borrower
        client_name = (borrower.full_name if borrower else "") or NO_NAME
        location = borrower.location if borrower else None
        locality = location.name if location else NO_LOCALITY
        route_name = loan.route.name if loan.route else NO_ROUTE

        client_flagged = _problem_documents(loan.documents, DocumentSubject.CLIENT)
        if client_flagged:
            records.append(_build_record(
                loan, DocumentSubject.CLIENT, client_name, locality, route_name, client_flagged,
            ))

        guarantor = loan.first_guarantor
        guarantor_flagged = _problem_documents(loan.documents, DocumentSubject.GUARANTOR)
        if guarantor_flagged and guarantor is not None:
            guarantor_name = guarantor.full_name or NO_NAME
            records.append(_build_record(
                loan,
                DocumentSubject.GUARANTOR,
                f"{client_name} (Guarantor: {guarantor_name})",
                locality,
                route_name,
                guarantor_flagged,
            ))

    return sort_records(records)


def sort_records(records: list[DocumentProblemRecord]) -> list[DocumentProblemRecord]:
    """지역 오름차순 → 서명일 내림차순 → 고객명"""
    by_name = sorted(records, key=lambda r: r.client_name)
    by_date = sorted(by_name, key=lambda r: r.sign_date, reverse=True)
    return sorted(by_date, key=lambda r: r.locality)


def collect_document_problems(
    db: Session,
    route_ids: Iterable[int],
    now: datetime,
    months: Optional[int] = None,
) -> list[DocumentProblemRecord]:
    """최근 N개월(기본 2) 구간의 서류 문제 행"""
    months = months if months is not None else settings.document_window_months
    since = shift_months(now, -months)
    loans = fetch_loans_with_documents(db, route_ids, since)
    records = build_problem_records(loans)
    logger.info(f"서류 문제 집계: 대출 {len(loans)}건 → 문제 행 {len(records)}건 (since {since:%Y-%m-%d})")
    return records


# ============================================================
# 그룹/요약
# ============================================================

def group_by_week(records: list[DocumentProblemRecord]) -> list[WeekGroup]:
    """서명일의 월요일 기준 그룹 (최근 주 먼저, 그룹 내 행 순서 유지)"""
    groups: dict[date, list[DocumentProblemRecord]] = {}
    for record in records:
        groups.setdefault(record.week_start, []).append(record)
    return [
        WeekGroup(week_start=week_start, records=groups[week_start])
        for week_start in sorted(groups, reverse=True)
    ]


def summarize(records: list[DocumentProblemRecord]) -> ProblemSummary:
    """요약 통계 (영향 고객, 주체별/지역별/서류유형별, 우선순위)"""
    summary = ProblemSummary(total_rows=len(records))
    if not records:
        summary.by_doc_type = {
            doc_type: {"missing": 0, "error": 0} for doc_type in DOC_TYPES
        }
        return summary

    summary.affected_clients = len({r.base_client_name for r in records})
    summary.client_rows = sum(1 for r in records if r.subject_type == DocumentSubject.CLIENT)
    summary.guarantor_rows = sum(1 for r in records if r.subject_type == DocumentSubject.GUARANTOR)
    summary.route_count = len({r.route_name for r in records})
    summary.high_priority = sum(1 for r in records if r.has_missing)
    summary.medium_priority = summary.total_rows - summary.high_priority

    summary.by_locality = dict(Counter(r.locality for r in records).most_common())

    by_doc_type = {doc_type: {"missing": 0, "error": 0} for doc_type in DOC_TYPES}
    for record in records:
        for doc_type in record.missing_types:
            by_doc_type.setdefault(doc_type, {"missing": 0, "error": 0})["missing"] += 1
        for doc_type in record.error_types:
            by_doc_type.setdefault(doc_type, {"missing": 0, "error": 0})["error"] += 1
    summary.by_doc_type = by_doc_type

    return summary
