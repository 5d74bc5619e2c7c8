"""
Route / Location 모델 - 영업 루트와 지역
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base


class Route(Base):
    """영업 루트"""
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)

    localities = relationship("Location", back_populates="route")

    def __repr__(self):
        return f"<Route(id={self.id}, name='{self.name}')>"


class Location(Base):
    """지역 (Localidad)"""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="SET NULL"), nullable=True)

    route = relationship("Route", back_populates="localities")

    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}')>"
