import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Numeric, Uuid, Index, func
from sqlalchemy.orm import relationship

from .base import Base, JSONType


class FounderProfile(Base):
    """
    Founder-side profile. Owned by the profile service; read-only here.

    Carries the startup stage and location used when scoring the
    founder's openings.
    """
    __tablename__ = 'founder_profile'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, unique=True)

    startup_name = Column(Text)
    startup_stage = Column(Text, nullable=False)  # IDEA|MVP_PROGRESS|MVP_LIVE|EARLY_REVENUE
    city = Column(Text)
    country = Column(Text)
    is_complete = Column(Boolean, default=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    openings = relationship("Opening", back_populates="founder_profile")


class BuilderProfile(Base):
    """
    Candidate profile. Owned by the profile service; read-only here.
    """
    __tablename__ = 'builder_profile'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, unique=True)

    display_name = Column(Text)
    skills = Column(JSONType, default=list)
    risk_appetite = Column(Text, nullable=False)  # LOW|MEDIUM|HIGH
    compensation_openness = Column(JSONType, default=list)  # subset of CompensationType
    hours_per_week = Column(Numeric(5, 1), nullable=False)
    roles_interested = Column(JSONType, default=list)
    remote_preference = Column(Text, nullable=False)  # ONSITE|REMOTE|HYBRID
    city = Column(Text)
    country = Column(Text)

    is_complete = Column(Boolean, default=False)
    is_visible = Column(Boolean, default=True)
    is_open_to_opportunities = Column(Boolean, default=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_builder_profile_eligible', 'is_complete', 'is_visible', 'is_open_to_opportunities'),
    )
