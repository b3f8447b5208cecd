import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Numeric, Uuid, Index, func
from sqlalchemy.orm import relationship

from .base import Base, JSONType


class Opening(Base):
    """
    A role a founder wants to fill. Owned by the opening service; read-only here.
    """
    __tablename__ = 'opening'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    founder_id = Column(Uuid, nullable=False)
    founder_profile_id = Column(Uuid, ForeignKey('founder_profile.id', ondelete='CASCADE'), nullable=False)

    title = Column(Text, nullable=False)
    role_type = Column(Text, nullable=False)  # COFOUNDER|EMPLOYEE|INTERN|FRACTIONAL
    skills_required = Column(JSONType, default=list)

    equity_min = Column(Numeric(6, 2), nullable=False, default=0)
    equity_max = Column(Numeric(6, 2), nullable=False, default=0)
    cash_min = Column(Numeric(12, 2), nullable=False, default=0)
    cash_max = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(Text, default='INR')

    hours_per_week = Column(Numeric(5, 1), nullable=False)
    remote_preference = Column(Text, nullable=False)

    status = Column(Text, nullable=False, default='ACTIVE')  # DRAFT|ACTIVE|PAUSED|CLOSED

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    founder_profile = relationship("FounderProfile", back_populates="openings", lazy="joined")

    __table_args__ = (
        Index('idx_opening_status', 'status'),
        Index('idx_opening_founder', 'founder_id'),
    )
