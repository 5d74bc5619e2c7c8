"""Telegram 발송 서비스 테스트 (httpx.MockTransport 사용, 실제 네트워크 없음)."""

import json

import httpx
import pytest

from reportbot.core.exceptions import ConfigurationError, DeliveryError
from reportbot.services import telegram_service
from reportbot.services.telegram_service import (
    TelegramApiError, TelegramService, get_telegram_service_with_token,
)

TOKEN = "123:TEST"

OK_BODY = {"ok": True, "result": {"message_id": 77}}
SERVER_ERROR = {"ok": False, "error_code": 500, "description": "Internal Server Error"}


class ScriptedApi:
    """미리 정한 응답을 순서대로 돌려주는 Bot API."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def reply(status: int, body=None, headers=None) -> httpx.Response:
    if body is None:
        return httpx.Response(status, text="", headers=headers)
    return httpx.Response(status, json=body, headers=headers)


@pytest.fixture
def sleeps() -> list[float]:
    return []


def make_service(api: ScriptedApi, sleeps: list[float], token: str = TOKEN, retries: int = 3) -> TelegramService:
    return TelegramService(
        bot_token=token,
        api_base="https://api.telegram.test",
        max_retries=retries,
        sleep=sleeps.append,
        client=httpx.Client(transport=httpx.MockTransport(api)),
    )


class TestSendMessage:
    def test_success_on_first_attempt(self, sleeps):
        api = ScriptedApi(reply(200, OK_BODY))
        result = make_service(api, sleeps).send_message("555", "<b>hello</b>")

        assert result.success
        assert result.attempts == 1
        assert result.message_id == 77
        assert sleeps == []

        request = api.requests[0]
        assert request.url.path == f"/bot{TOKEN}/sendMessage"
        payload = json.loads(request.content)
        assert payload["chat_id"] == "555"
        assert payload["parse_mode"] == "HTML"
        assert payload["text"] == "<b>hello</b>"

    def test_two_failures_then_success(self, sleeps):
        """실패, 실패, 성공 → 3번째 시도에 성공, 2초와 4초 대기."""
        api = ScriptedApi(reply(500, SERVER_ERROR), reply(500, SERVER_ERROR), reply(200, OK_BODY))
        result = make_service(api, sleeps).send_message("555", "hi")

        assert result.attempts == 3
        assert sleeps == [2, 4]

    def test_rate_limit_waits_server_hint(self, sleeps):
        rate_limited = {
            "ok": False,
            "error_code": 429,
            "description": "Too Many Requests: retry after 7",
            "parameters": {"retry_after": 7},
        }
        api = ScriptedApi(reply(429, rate_limited), reply(200, OK_BODY))
        result = make_service(api, sleeps).send_message("555", "hi")

        assert result.attempts == 2
        assert sleeps == [7], "must wait exactly the server-provided interval"

    def test_rate_limit_header_fallback(self, sleeps):
        api = ScriptedApi(reply(429, headers={"Retry-After": "5"}), reply(200, OK_BODY))
        make_service(api, sleeps).send_message("555", "hi")

        assert sleeps == [5.0]

    def test_network_error_is_retried(self, sleeps):
        api = ScriptedApi(httpx.ConnectError("connection refused"), reply(200, OK_BODY))
        result = make_service(api, sleeps).send_message("555", "hi")

        assert result.attempts == 2
        assert sleeps == [2]

    def test_ok_false_with_200_is_failure(self, sleeps):
        api = ScriptedApi(
            reply(200, {"ok": False, "error_code": 400, "description": "Bad Request: chat not found"}),
            reply(200, OK_BODY),
        )
        result = make_service(api, sleeps).send_message("555", "hi")
        assert result.attempts == 2

    def test_exhaustion_raises_without_final_wait(self, sleeps):
        api = ScriptedApi(reply(500, SERVER_ERROR), reply(500, SERVER_ERROR), reply(500, SERVER_ERROR))

        with pytest.raises(DeliveryError) as excinfo:
            make_service(api, sleeps).send_message("555", "hi")

        assert excinfo.value.attempts == 3
        assert isinstance(excinfo.value.last_error, TelegramApiError)
        assert excinfo.value.last_error.status_code == 500
        assert sleeps == [2, 4], "no wait after the final attempt"
        assert len(api.requests) == 3

    def test_single_attempt_limit(self, sleeps):
        api = ScriptedApi(reply(500, SERVER_ERROR))

        with pytest.raises(DeliveryError) as excinfo:
            make_service(api, sleeps, retries=1).send_message("555", "hi")

        assert excinfo.value.attempts == 1
        assert len(api.requests) == 1, "max_retries=1 means one request"
        assert sleeps == []

    def test_long_text_is_clipped(self, sleeps):
        api = ScriptedApi(reply(200, OK_BODY))
        make_service(api, sleeps).send_message("555", "x" * 5000)

        payload = json.loads(api.requests[0].content)
        assert len(payload["text"]) == 4096


class TestSendDocument:
    def test_multipart_upload(self, sleeps):
        api = ScriptedApi(reply(200, OK_BODY))
        result = make_service(api, sleeps).send_document("555", b"%PDF-1.4 test", "report.pdf", "caption")

        assert result.success
        request = api.requests[0]
        assert request.url.path == f"/bot{TOKEN}/sendDocument"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'filename="report.pdf"' in body
        assert b"%PDF-1.4 test" in body
        assert b"caption" in body


class TestConfiguration:
    def test_missing_token(self, sleeps):
        api = ScriptedApi()
        service = make_service(api, sleeps, token="")

        assert not service.is_configured
        with pytest.raises(ConfigurationError):
            service.send_message("555", "hi")
        assert api.requests == []

    def test_get_me(self, sleeps):
        api = ScriptedApi(reply(200, {"ok": True, "result": {"username": "report_bot"}}))
        assert make_service(api, sleeps).get_me() == {"username": "report_bot"}


class TestServiceAccessor:
    """토큰/재시도 횟수 기준 서비스 재사용."""

    @pytest.fixture(autouse=True)
    def fresh_singleton(self, monkeypatch):
        monkeypatch.setattr(telegram_service, "_service", None)
        yield
        if telegram_service._service is not None:
            telegram_service._service.close()

    def test_retry_limit_applied(self):
        service = get_telegram_service_with_token(TOKEN, 1)
        assert service.max_retries == 1

    def test_same_settings_reuse_service(self):
        first = get_telegram_service_with_token(TOKEN, 2)
        assert get_telegram_service_with_token(TOKEN, 2) is first

    def test_changed_token_closes_previous_client(self):
        first = get_telegram_service_with_token(TOKEN, 3)
        second = get_telegram_service_with_token("456:OTHER", 3)

        assert second is not first
        assert first._client.is_closed, "replaced client must release its connection pool"
        assert not second._client.is_closed

    def test_changed_retry_limit_rebuilds_service(self):
        first = get_telegram_service_with_token(TOKEN, 3)
        second = get_telegram_service_with_token(TOKEN, 1)

        assert second.max_retries == 1
        assert first._client.is_closed
