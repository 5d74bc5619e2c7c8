"""
보고서 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..models.execution_log import DeliveryStatus, ExecutionStatus, ExecutionType


class ReportConfigResponse(BaseModel):
    id: int
    name: str
    report_type: str
    schedule_days: str
    schedule_hour: int
    is_active: bool
    route_ids: list[int] = []
    recipient_ids: list[int] = []
    next_execution_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExecutionResultResponse(BaseModel):
    config_id: int
    config_name: str
    report_type: str
    execution_type: ExecutionType
    status: ExecutionStatus
    sent_count: int
    failed_count: int
    recipients_without_endpoint: list[str]
    failed_recipients: list[str]
    last_execution_at: Optional[datetime]
    next_execution_at: Optional[datetime]
    generation_error: Optional[str]
    error: Optional[str]
    summary: str
    execution_log_id: Optional[int]

    model_config = {"from_attributes": True}


class DeliveryLogResponse(BaseModel):
    id: int
    user_id: Optional[int]
    user_name: str
    chat_id: Optional[str]
    status: DeliveryStatus
    error_message: Optional[str]
    response_time_ms: int
    sent_at: Optional[datetime]

    model_config = {"from_attributes": True}


class ExecutionLogResponse(BaseModel):
    id: int
    report_config_id: Optional[int]
    config_name: str
    report_type: str
    execution_type: ExecutionType
    status: ExecutionStatus
    message: Optional[str]
    error_details: Optional[str]
    recipients_count: int
    successful_deliveries: int
    failed_deliveries: int
    recipients_without_endpoint: int
    start_time: datetime
    end_time: Optional[datetime]
    duration_seconds: float
    next_execution_at: Optional[datetime]
    deliveries: list[DeliveryLogResponse] = []

    model_config = {"from_attributes": True}
