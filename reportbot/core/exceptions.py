"""
파이프라인 예외 정의
"""

from typing import Optional


class ReportBotError(Exception):
    """ReportBot 공통 예외"""


class ConfigurationError(ReportBotError):
    """보고서 설정 자체를 해석할 수 없음 (봇 토큰 누락, 설정 없음 등) - 실행 전체 중단"""


class GenerationError(ReportBotError):
    """Generator 내부 실패 - 아티팩트의 error_message로 흡수된다"""


class DeliveryError(ReportBotError):
    """재시도 소진 후 발송 실패"""

    def __init__(self, message: str, last_error: Optional[BaseException] = None, attempts: int = 0):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class MissingEndpointError(ReportBotError):
    """수신자에게 활성 Telegram 채팅이 없음 (정보성, 실패로 집계하지 않음)"""

    def __init__(self, user_id: int, user_name: str):
        super().__init__(f"활성 Telegram 계정 없음: {user_name} (#{user_id})")
        self.user_id = user_id
        self.user_name = user_name
