"""
보고 기간 계산 - 월 경계에 걸친 "보고 주"가 어느 달에 속하는지 결정

주는 월요일 시작, 근무일은 월~토 6일.
해당 월 안의 근무일이 3일 초과이면 그 달의 주, 정확히 3일이면 월요일이 그 달에 있을 때만 그 달의 주.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

WORKING_DAYS_PER_WEEK = 6


@dataclass(frozen=True)
class ReportingWeek:
    """월에 할당된 보고 주 (월요일 ~ 일요일)"""
    number: int
    start: date
    end: date

    def contains(self, moment: datetime) -> bool:
        """월요일 00:00 ~ 일요일 23:59:59 포함 여부"""
        week_start = datetime.combine(self.start, time.min)
        week_end = datetime.combine(self.end, time.max)
        naive = moment.replace(tzinfo=None)
        return week_start <= naive <= week_end


@dataclass(frozen=True)
class ReportingPeriod:
    """보고 기간 {year, month}"""
    year: int
    month: int
    month_label: str

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def label(self) -> str:
        return f"{self.month_label} {self.year}"


def reporting_period(year: int, month: int) -> ReportingPeriod:
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    return ReportingPeriod(year=year, month=month, month_label=MONTH_NAMES[month - 1])


def _working_days_in_month(monday: date, year: int, month: int) -> int:
    days = (monday + timedelta(days=offset) for offset in range(WORKING_DAYS_PER_WEEK))
    return sum(1 for day in days if day.year == year and day.month == month)


def reporting_weeks(year: int, month: int) -> list[ReportingWeek]:
    """해당 월에 할당된 보고 주 목록 (1번부터)"""
    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    weeks: list[ReportingWeek] = []
    monday = first_day - timedelta(days=first_day.weekday())
    while monday <= last_day:
        count = _working_days_in_month(monday, year, month)
        monday_in_month = monday.year == year and monday.month == month
        if count > 3 or (count == 3 and monday_in_month):
            weeks.append(ReportingWeek(
                number=len(weeks) + 1,
                start=monday,
                end=monday + timedelta(days=6),
            ))
        monday += timedelta(days=7)
    return weeks


def find_reporting_week(moment: datetime) -> ReportingWeek | None:
    """현재 월의 보고 주 중 moment를 포함하는 주"""
    for week in reporting_weeks(moment.year, moment.month):
        if week.contains(moment):
            return week
    return None


def previous_reporting_period(now: datetime) -> ReportingPeriod:
    """
    "직전 보고 기간" 계산
    - 현재 월의 1주차이면 전월 (1월이면 전년도 12월)
    - 그 외 (어느 주에도 속하지 않는 경우 포함)는 현재 월
    """
    week = find_reporting_week(now)
    if week is not None and week.number == 1:
        if now.month == 1:
            return reporting_period(now.year - 1, 12)
        return reporting_period(now.year, now.month - 1)
    return reporting_period(now.year, now.month)


def shift_months(moment: datetime, months: int) -> datetime:
    """월 단위 이동 (말일 보정)"""
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
