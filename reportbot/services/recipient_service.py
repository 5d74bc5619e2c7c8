"""
수신자 디렉토리 - 플랫폼 사용자 → 활성 Telegram 채팅
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from ..core.exceptions import MissingEndpointError
from ..models.user import User, TelegramUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    user_id: int
    name: str


def get_recipients(db: Session, user_ids: Iterable[int]) -> list[Recipient]:
    """설정에 지정된 순서(id 순)로 수신자 조회"""
    user_ids = list(user_ids)
    if not user_ids:
        return []
    users = db.query(User).filter(User.id.in_(user_ids)).order_by(User.id).all()
    found = {user.id for user in users}
    missing = [user_id for user_id in user_ids if user_id not in found]
    if missing:
        logger.warning(f"존재하지 않는 수신자 id: {missing}")
    return [Recipient(user_id=user.id, name=user.name) for user in users]


def resolve_chat_id(db: Session, recipient: Recipient) -> str:
    """활성 Telegram 채팅 id (없으면 MissingEndpointError)"""
    account = (
        db.query(TelegramUser)
        .filter(
            TelegramUser.platform_user_id == recipient.user_id,
            TelegramUser.is_active == True,  # noqa: E712
        )
        .order_by(TelegramUser.id)
        .first()
    )
    if account is None:
        raise MissingEndpointError(recipient.user_id, recipient.name)
    return account.chat_id
