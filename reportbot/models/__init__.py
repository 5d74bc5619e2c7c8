from .route import Route, Location
from .loan import PersonalData, Loan, DocumentPhoto, DocumentSubject, DocumentType, loan_collaterals
from .user import User, TelegramUser
from .report_config import ReportConfig, ReportType
from .app_setting import AppSetting
from .execution_log import (
    ReportExecutionLog, DeliveryLog, ExecutionType, ExecutionStatus, DeliveryStatus,
)

__all__ = [
    "Route", "Location", "PersonalData", "Loan", "DocumentPhoto",
    "DocumentSubject", "DocumentType", "loan_collaterals",
    "User", "TelegramUser", "ReportConfig", "ReportType", "AppSetting",
    "ReportExecutionLog", "DeliveryLog", "ExecutionType", "ExecutionStatus", "DeliveryStatus",
]
