"""
정기 실행 스케줄 계산 - {요일 집합, 시각} 규칙으로 다음 실행 시각 계산

검색은 항상 "내일"부터 시작한다. 오늘 이후 시각이라도 당일 실행은 선택되지 않는다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

# 일요일 = 0 ... 토요일 = 6
WEEKDAY_INDEX = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}


@dataclass(frozen=True)
class RecurringRule:
    """정기 실행 규칙"""
    weekdays: frozenset
    hour: int

    def __post_init__(self):
        if not self.weekdays:
            raise ValueError("weekdays must not be empty")
        unknown = [day for day in self.weekdays if day not in WEEKDAY_INDEX]
        if unknown:
            raise ValueError(f"unknown weekday: {', '.join(sorted(unknown))}")
        if not isinstance(self.hour, int) or not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be in [0, 23]: {self.hour!r}")

    @classmethod
    def from_config(cls, days: str | Iterable[str], hour: int) -> "RecurringRule":
        """DB 저장 형식 ("monday,friday") 또는 요일 목록으로 생성"""
        if isinstance(days, str):
            days = days.split(",")
        names = frozenset(day.strip().lower() for day in days if day and day.strip())
        return cls(weekdays=names, hour=hour)

    @property
    def day_indexes(self) -> list[int]:
        return sorted(WEEKDAY_INDEX[day] for day in self.weekdays)


def _weekday_index(moment: datetime) -> int:
    # datetime.weekday(): 월요일 = 0
    return (moment.weekday() + 1) % 7


def next_execution(rule: RecurringRule, now: datetime) -> datetime:
    """다음 실행 시각 (항상 now 이후, 당일 제외)"""
    current = _weekday_index(now)
    configured = rule.day_indexes

    days_ahead = None
    # 이번 주기(일~토)의 남은 요일
    for index in range(current + 1, 7):
        if index in configured:
            days_ahead = index - current
            break

    # 다음 주기의 첫 요일
    if days_ahead is None:
        days_ahead = 7 - current + configured[0]

    target = now + timedelta(days=days_ahead)
    return target.replace(hour=rule.hour, minute=0, second=0, microsecond=0)


def earliest_next_execution(rules: Iterable[RecurringRule], now: datetime) -> Optional[datetime]:
    """여러 규칙 중 가장 이른 다음 실행 시각"""
    candidates = [next_execution(rule, now) for rule in rules]
    return min(candidates) if candidates else None
