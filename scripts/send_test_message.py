"""
Telegram 발송 테스트 스크립트
사용: python -m scripts.send_test_message <chat_id>
"""

import sys
import os
import logging

# 프로젝트 루트를 PYTHONPATH에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


def main():
    from reportbot.core.config import now_local
    from reportbot.core.exceptions import DeliveryError
    from reportbot.services.telegram_service import TelegramService

    if len(sys.argv) < 2:
        logger.error("사용: python -m scripts.send_test_message <chat_id>")
        sys.exit(1)
    chat_id = sys.argv[1]

    logger.info("=== ReportBot Telegram 발송 테스트 ===")
    service = TelegramService()

    if not service.is_configured:
        logger.error("Telegram 설정이 완료되지 않았습니다.")
        logger.error(".env 파일에 TELEGRAM_BOT_TOKEN을 설정하세요.")
        sys.exit(1)

    bot = service.get_me()
    logger.info(f"봇 확인: @{bot.get('username')} (id={bot.get('id')})")

    try:
        result = service.send_message(
            chat_id,
            f"🤖 <b>ReportBot test</b>\n\n📅 {now_local():%Y-%m-%d %H:%M}",
        )
    except DeliveryError as e:
        logger.error(f"테스트 메시지 발송 실패: {e}")
        sys.exit(1)

    logger.info(f"테스트 메시지 발송 성공! → {chat_id} (message_id={result.message_id}, {result.attempts}회 시도)")


if __name__ == "__main__":
    main()
