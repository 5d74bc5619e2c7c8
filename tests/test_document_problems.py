"""서류 문제 집계 테스트 (조회 범위, 행 생성 규칙, 정렬, 주 그룹, 요약)."""

from datetime import date

import pytest

from reportbot.models import DocumentSubject
from reportbot.services.document_problems import (
    NO_LOCALITY,
    NO_ROUTE,
    DocumentProblemRecord,
    collect_document_problems,
    group_by_week,
    sort_records,
    summarize,
)
from tests.conftest import local


@pytest.fixture
def route(factory):
    return factory.route("Route A")


@pytest.fixture
def centro(factory, route):
    return factory.location("Centro", route)


def record(name, locality="Centro", sign_date=None, subject=DocumentSubject.CLIENT,
           missing=(), errors=()) -> DocumentProblemRecord:
    descriptions = [f"{t} missing" for t in missing] + [f"{t} with error" for t in errors]
    return DocumentProblemRecord(
        locality=locality,
        route_name="Route A",
        client_name=name,
        sign_date=sign_date or local(2025, 2, 20, 10, 0).replace(tzinfo=None),
        subject_type=subject,
        problem_descriptions=descriptions,
        missing_types=list(missing),
        error_types=list(errors),
    )


class TestCollectDocumentProblems:
    """DB 조회 + 행 생성."""

    def test_client_document_with_error(self, db, factory, route, centro, now):
        borrower = factory.person("Ana Lopez", centro)
        loan = factory.loan(borrower, local(2025, 2, 20, 10, 0), route)
        factory.document(loan, "INE", is_error=True, description="Blurry photo")
        factory.document(loan, "PAGARE")

        records = collect_document_problems(db, [], now)

        assert len(records) == 1
        row = records[0]
        assert row.client_name == "Ana Lopez"
        assert row.subject_type == DocumentSubject.CLIENT
        assert row.problem_descriptions == ["INE with error"]
        assert row.observations == "Blurry photo"
        assert row.locality == "Centro"
        assert row.route_name == "Route A"

    def test_loan_without_documents_is_not_a_problem(self, db, factory, route, centro, now):
        factory.loan(factory.person("Sin Docs", centro), local(2025, 2, 20, 10, 0), route)
        assert collect_document_problems(db, [], now) == []

    def test_clean_documents_are_not_a_problem(self, db, factory, route, centro, now):
        loan = factory.loan(factory.person("Clean", centro), local(2025, 2, 20, 10, 0), route)
        factory.document(loan, "INE")
        factory.document(loan, "DOMICILIO")
        assert collect_document_problems(db, [], now) == []

    def test_guarantor_row_uses_first_guarantor(self, db, factory, route, centro, now):
        borrower = factory.person("Ana Lopez", centro)
        first = factory.person("Luis Perez")
        second = factory.person("Zoe Ruiz")
        loan = factory.loan(borrower, local(2025, 2, 20, 10, 0), route, guarantors=(first, second))
        factory.document(loan, "DOMICILIO", subject=DocumentSubject.GUARANTOR, is_missing=True)

        records = collect_document_problems(db, [], now)

        assert len(records) == 1
        assert records[0].client_name == "Ana Lopez (Guarantor: Luis Perez)"
        assert records[0].subject_type == DocumentSubject.GUARANTOR
        assert records[0].problem_descriptions == ["DOMICILIO missing"]
        assert records[0].base_client_name == "Ana Lopez"

    def test_client_and_guarantor_rows_for_same_loan(self, db, factory, route, centro, now):
        loan = factory.loan(
            factory.person("Ana Lopez", centro), local(2025, 2, 20, 10, 0), route,
            guarantors=(factory.person("Luis Perez"),),
        )
        factory.document(loan, "INE", is_missing=True)
        factory.document(loan, "INE", subject=DocumentSubject.GUARANTOR, is_error=True)

        subjects = [r.subject_type for r in collect_document_problems(db, [], now)]
        assert sorted(s.value for s in subjects) == ["CLIENT", "GUARANTOR"]

    def test_guarantor_flags_without_guarantor_are_ignored(self, db, factory, route, centro, now):
        """보증인이 없는 대출의 GUARANTOR 서류 플래그는 행을 만들지 않는다."""
        loan = factory.loan(factory.person("Ana Lopez", centro), local(2025, 2, 20, 10, 0), route)
        factory.document(loan, "INE", subject=DocumentSubject.GUARANTOR, is_missing=True)

        assert collect_document_problems(db, [], now) == [], "no guarantor, no guarantor row"

        factory.document(loan, "PAGARE", is_error=True)
        records = collect_document_problems(db, [], now)
        assert [r.subject_type for r in records] == [DocumentSubject.CLIENT]
        assert records[0].client_name == "Ana Lopez"

    def test_window_setting_months(self, db, factory, route, centro, now):
        loan = factory.loan(factory.person("Ana", centro), local(2024, 11, 20, 10, 0), route)
        factory.document(loan, "INE", is_missing=True)

        assert collect_document_problems(db, [], now) == []
        assert len(collect_document_problems(db, [], now, months=6)) == 1

    def test_both_flags_produce_two_descriptions(self, db, factory, route, centro, now):
        loan = factory.loan(factory.person("Ana", centro), local(2025, 2, 20, 10, 0), route)
        factory.document(loan, "PAGARE", is_error=True, is_missing=True)

        row = collect_document_problems(db, [], now)[0]
        assert row.problem_descriptions == ["PAGARE with error", "PAGARE missing"]

    def test_window_excludes_old_loans(self, db, factory, route, centro, now):
        old = factory.loan(factory.person("Old", centro), local(2024, 12, 20, 10, 0), route)
        factory.document(old, "INE", is_missing=True)
        recent = factory.loan(factory.person("Recent", centro), local(2025, 1, 10, 10, 0), route)
        factory.document(recent, "INE", is_missing=True)

        names = [r.client_name for r in collect_document_problems(db, [], now)]
        assert names == ["Recent"]

    def test_route_filter(self, db, factory, route, centro, now):
        other_route = factory.route("Route B")
        mine = factory.loan(factory.person("Mine", centro), local(2025, 2, 20, 10, 0), route)
        theirs = factory.loan(factory.person("Theirs", centro), local(2025, 2, 20, 10, 0), other_route)
        factory.document(mine, "INE", is_missing=True)
        factory.document(theirs, "INE", is_missing=True)

        assert [r.client_name for r in collect_document_problems(db, [route.id], now)] == ["Mine"]
        assert len(collect_document_problems(db, [], now)) == 2

    def test_missing_location_and_route_labels(self, db, factory, now):
        loan = factory.loan(factory.person("Nowhere"), local(2025, 2, 20, 10, 0))
        factory.document(loan, "INE", is_missing=True)

        row = collect_document_problems(db, [], now)[0]
        assert row.locality == NO_LOCALITY
        assert row.route_name == NO_ROUTE

    def test_repeated_runs_are_identical(self, db, factory, route, centro, now):
        for index, name in enumerate(["B", "A", "C"]):
            loan = factory.loan(factory.person(name, centro), local(2025, 2, 10 + index, 10, 0), route)
            factory.document(loan, "INE", is_missing=True)

        first = collect_document_problems(db, [], now)
        second = collect_document_problems(db, [], now)
        assert first == second


class TestSortAndGroup:
    def test_sort_order(self):
        rows = [
            record("Zed", "Norte", local(2025, 2, 1, 9, 0).replace(tzinfo=None)),
            record("Bea", "Centro", local(2025, 2, 1, 9, 0).replace(tzinfo=None)),
            record("Ana", "Centro", local(2025, 2, 1, 9, 0).replace(tzinfo=None)),
            record("Old", "Centro", local(2025, 1, 15, 9, 0).replace(tzinfo=None)),
            record("New", "Centro", local(2025, 2, 25, 9, 0).replace(tzinfo=None)),
        ]
        ordered = [r.client_name for r in sort_records(rows)]
        assert ordered == ["New", "Ana", "Bea", "Old", "Zed"]

    def test_group_by_week_most_recent_first(self):
        rows = [
            record("A", sign_date=local(2025, 2, 3, 9, 0).replace(tzinfo=None)),   # 월
            record("B", sign_date=local(2025, 2, 9, 9, 0).replace(tzinfo=None)),   # 일 (같은 주)
            record("C", sign_date=local(2025, 2, 18, 9, 0).replace(tzinfo=None)),
        ]
        groups = group_by_week(rows)

        assert [g.week_start for g in groups] == [date(2025, 2, 17), date(2025, 2, 3)]
        assert [r.client_name for r in groups[1].records] == ["A", "B"]
        assert groups[1].week_end == date(2025, 2, 9)


class TestSummarize:
    def test_empty(self):
        summary = summarize([])
        assert summary.total_rows == 0
        assert summary.affected_clients == 0
        assert summary.by_doc_type["INE"] == {"missing": 0, "error": 0}

    def test_counts(self):
        rows = [
            record("Ana", "Centro", missing=("INE",)),
            record("Ana (Guarantor: Luis)", "Centro", subject=DocumentSubject.GUARANTOR, errors=("PAGARE",)),
            record("Bea", "Norte", errors=("INE", "DOMICILIO")),
        ]
        summary = summarize(rows)

        assert summary.total_rows == 3
        assert summary.affected_clients == 2, "guarantor row counts toward the borrower"
        assert summary.client_rows == 2
        assert summary.guarantor_rows == 1
        assert summary.high_priority == 1
        assert summary.medium_priority == 2
        assert summary.by_locality == {"Centro": 2, "Norte": 1}
        assert summary.by_doc_type["INE"] == {"missing": 1, "error": 1}
        assert summary.by_doc_type["PAGARE"] == {"missing": 0, "error": 1}
        assert summary.by_doc_type["DOMICILIO"] == {"missing": 0, "error": 1}
