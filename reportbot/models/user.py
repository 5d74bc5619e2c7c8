"""
User / TelegramUser 모델 - 수신자 디렉토리
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from ..core.database import Base


class User(Base):
    """플랫폼 사용자"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(300), nullable=True, unique=True)
    created_at = Column(DateTime, server_default=func.now())

    telegram_accounts = relationship("TelegramUser", back_populates="platform_user")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"


class TelegramUser(Base):
    """Telegram 채팅 (사용자당 활성 계정은 0~1개)"""
    __tablename__ = "telegram_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(String(100), nullable=False, unique=True)
    username = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    platform_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    registered_at = Column(DateTime, server_default=func.now())

    platform_user = relationship("User", back_populates="telegram_accounts")

    def __repr__(self):
        return f"<TelegramUser(id={self.id}, chat_id='{self.chat_id}', active={self.is_active})>"
