"""
보고서 파일 생성 스크립트 (발송 없이 로컬 저장)
사용: python -m scripts.render_report <report_config_id> [출력 디렉토리]
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
    from reportbot.agents.report_agent import get_report_agent
    from reportbot.core.database import SessionLocal
    from reportbot.core.exceptions import ConfigurationError
    from reportbot.services import config_service

    if len(sys.argv) < 2:
        logger.error("사용: python -m scripts.render_report <report_config_id> [출력 디렉토리]")
        sys.exit(1)
    config_id = int(sys.argv[1])
    output_dir = sys.argv[2] if len(sys.argv) > 2 else "."

    db = SessionLocal()
    try:
        snapshot = config_service.load_snapshot(db, config_id)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)
    finally:
        db.close()

    logger.info(f"=== 보고서 생성: {snapshot.name} ({snapshot.report_type}) ===")
    artifact = get_report_agent().render_artifact(snapshot)

    if artifact.failed:
        logger.error(f"보고서 생성 실패: {artifact.error_message}")
        sys.exit(1)

    path = os.path.join(output_dir, artifact.filename)
    with open(path, "wb") as f:
        f.write(artifact.content or b"")
    logger.info(f"저장 완료: {path} ({len(artifact.content or b'')} bytes)")


if __name__ == "__main__":
    main()
