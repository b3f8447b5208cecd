import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Uuid, func

from .base import Base


class ScenarioResponse(Base):
    """
    Working-style quiz answers (A-D) for six scenarios, one row per user.
    """
    __tablename__ = 'scenario_response'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, unique=True)

    scenario1 = Column(Text)
    scenario2 = Column(Text)
    scenario3 = Column(Text)
    scenario4 = Column(Text)
    scenario5 = Column(Text)
    scenario6 = Column(Text)

    is_complete = Column(Boolean, default=False)
    completed_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
