"""
스케줄러 Pydantic 스키마
"""

from typing import Optional

from pydantic import BaseModel


class SchedulerJobResponse(BaseModel):
    id: str
    name: str
    next_run_time: Optional[str]


class SchedulerStatusResponse(BaseModel):
    running: bool
    next_execution_at: Optional[str]
    last_execution_at: Optional[str]
    active_configs: int
    scheduled_config_ids: list[int] = []
    jobs: list[SchedulerJobResponse] = []


class RescheduleResponse(BaseModel):
    config_id: int
    scheduled: bool
    next_execution_at: Optional[str]
    message: str
