"""
Telegram Bot API 발송 서비스 (sendMessage / sendDocument)
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from ..core.config import settings
from ..core.exceptions import ConfigurationError, DeliveryError, ReportBotError

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4096
CAPTION_LIMIT = 1024


@dataclass
class SendResult:
    """발송 결과"""
    chat_id: str
    success: bool
    message_id: Optional[int] = None
    attempts: int = 0
    response_time_ms: int = 0
    error_message: Optional[str] = None


class TelegramApiError(ReportBotError):
    """Bot API 오류 응답 (ok=false 또는 HTTP 오류)"""

    def __init__(self, message: str, status_code: int = 0, retry_after: Optional[float] = None):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


def _clip(text: str, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[: limit - 3] + "..."


class TelegramService:
    """Telegram 발송 서비스 (시도 횟수 제한 + rate limit 대기)"""

    def __init__(
        self,
        bot_token: str = None,
        api_base: str = None,
        max_retries: int = None,
        sleep: Callable[[float], None] = time.sleep,
        client: Optional[httpx.Client] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.api_base = (api_base or settings.telegram_api_base).rstrip("/")
        self.max_retries = max_retries or settings.delivery_max_retries
        self._sleep = sleep
        self._client = client or httpx.Client()

        if not self.is_configured:
            logger.warning(
                "Telegram 설정이 완료되지 않았습니다. "
                ".env 파일 또는 app_settings에 TELEGRAM_BOT_TOKEN을 설정하세요."
            )

    @property
    def is_configured(self) -> bool:
        """봇 토큰 설정 여부"""
        return bool(self.bot_token)

    def _url(self, method: str) -> str:
        return f"{self.api_base}/bot{self.bot_token}/{method}"

    # ---------- 공개 API ----------

    def send_message(self, chat_id: str, text: str) -> SendResult:
        """텍스트 메시지 발송 (HTML, timeout 10초)"""
        payload = {
            "chat_id": chat_id,
            "text": _clip(text, MESSAGE_LIMIT),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        return self._post_with_retry(
            "sendMessage", chat_id,
            timeout=settings.delivery_text_timeout,
            json=payload,
        )

    def send_document(self, chat_id: str, content: bytes, filename: str, caption: str = "") -> SendResult:
        """문서 발송 (multipart, timeout 30초)"""
        data = {"chat_id": chat_id, "parse_mode": "HTML"}
        if caption:
            data["caption"] = _clip(caption, CAPTION_LIMIT)
        mime = "application/pdf" if filename.lower().endswith(".pdf") else "application/octet-stream"
        return self._post_with_retry(
            "sendDocument", chat_id,
            timeout=settings.delivery_document_timeout,
            data=data,
            files={"document": (filename, content, mime)},
        )

    def get_me(self) -> dict:
        """봇 정보 조회 (진단용, 재시도 없음)"""
        if not self.is_configured:
            raise ConfigurationError("Telegram 봇 토큰 미설정")
        response = self._client.get(self._url("getMe"), timeout=settings.delivery_text_timeout)
        body = self._parse(response)
        return body.get("result", {})

    # ---------- 내부 ----------

    def _parse(self, response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("ok", False):
            error_code = body.get("error_code") or response.status_code
            description = body.get("description") or response.text[:200] or "알 수 없는 오류"
            retry_after = (body.get("parameters") or {}).get("retry_after")
            if retry_after is None and "Retry-After" in response.headers:
                try:
                    retry_after = float(response.headers["Retry-After"])
                except ValueError:
                    retry_after = None
            raise TelegramApiError(
                f"Telegram API 오류 {error_code}: {description}",
                status_code=int(error_code),
                retry_after=retry_after,
            )
        return body

    def _post_with_retry(self, method: str, chat_id: str, timeout: float, **kwargs) -> SendResult:
        """
        최대 max_retries회 시도
        - 429: 서버가 지정한 retry_after 초만큼 대기
        - 그 외 실패: 2^attempt 초 대기
        - 마지막 시도 이후에는 대기하지 않고 DeliveryError
        """
        if not self.is_configured:
            raise ConfigurationError("Telegram 봇 토큰 미설정")

        started = time.monotonic()
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self._client.post(self._url(method), timeout=timeout, **kwargs)
                body = self._parse(response)
                elapsed_ms = int((time.monotonic() - started) * 1000)
                message_id = (body.get("result") or {}).get("message_id")
                logger.info(f"Telegram {method} 성공: chat={chat_id} (시도 {attempt}회, {elapsed_ms}ms)")
                return SendResult(
                    chat_id=chat_id,
                    success=True,
                    message_id=message_id,
                    attempts=attempt,
                    response_time_ms=elapsed_ms,
                )
            except (httpx.HTTPError, TelegramApiError) as e:
                last_error = e
                if attempt >= self.max_retries:
                    break

                if isinstance(e, TelegramApiError) and e.rate_limited and e.retry_after is not None:
                    wait = e.retry_after
                    logger.warning(f"Telegram rate limit: {wait}초 대기 후 재시도 ({attempt}/{self.max_retries})")
                else:
                    wait = 2 ** attempt
                    logger.warning(
                        f"Telegram {method} 실패: {e} - {wait}초 후 재시도 ({attempt}/{self.max_retries})"
                    )
                self._sleep(wait)

        logger.error(f"Telegram {method} 최종 실패: chat={chat_id} - {last_error}")
        raise DeliveryError(
            f"{self.max_retries}회 시도 후 발송 실패: {last_error}",
            last_error=last_error,
            attempts=self.max_retries,
        ) from last_error

    def close(self):
        self._client.close()


# 싱글톤
_service: Optional[TelegramService] = None


def get_telegram_service() -> TelegramService:
    """Telegram 서비스 싱글톤 반환 (.env 토큰)"""
    global _service
    if _service is None:
        _service = TelegramService()
    return _service


def get_telegram_service_with_token(bot_token: str, max_retries: int = None) -> TelegramService:
    """DB 설정 토큰/재시도 횟수로 서비스 반환 (둘 다 같으면 재사용)"""
    global _service
    max_retries = max_retries or settings.delivery_max_retries
    if _service is not None and _service.bot_token == bot_token and _service.max_retries == max_retries:
        return _service

    if _service is not None:
        _service.close()
    _service = TelegramService(bot_token=bot_token, max_retries=max_retries)
    return _service
