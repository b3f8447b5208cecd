import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Uuid, UniqueConstraint, Index, func

from .base import Base, JSONType


class Match(Base):
    """
    Engine-generated pairing between a founder's opening and a builder.

    Tracks:
    - Compatibility score and per-factor breakdown (refreshed by the nightly sweep)
    - Each side's swipe action and when it happened
    - Mutuality, derived by the action state machine
    - Every status the match has been in, with when it changed

    One row per (founder, builder, opening). Refreshing a row only rewrites
    the score fields; action and status state survive.
    """
    __tablename__ = 'match'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    founder_id = Column(Uuid, nullable=False)
    builder_id = Column(Uuid, nullable=False)
    opening_id = Column(Uuid, ForeignKey('opening.id', ondelete='CASCADE'), nullable=False)
    founder_profile_id = Column(Uuid, nullable=True)
    builder_profile_id = Column(Uuid, nullable=True)

    compatibility_score = Column(Integer, nullable=False, default=0)
    score_breakdown = Column(JSONType, default=dict)

    status = Column(Text, nullable=False, default='PENDING')
    # [{"status": ..., "changed_at": iso8601}], oldest first
    status_history = Column(JSONType, nullable=False, default=list)

    founder_action = Column(Text, nullable=True)  # LIKE|SKIP|SAVE
    founder_action_at = Column(TIMESTAMP(timezone=True), nullable=True)
    builder_action = Column(Text, nullable=True)
    builder_action_at = Column(TIMESTAMP(timezone=True), nullable=True)

    is_mutual = Column(Boolean, nullable=False, default=False)
    matched_at = Column(TIMESTAMP(timezone=True), nullable=True)
    last_activity_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    calculated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('founder_id', 'builder_id', 'opening_id', name='uq_match_founder_builder_opening'),
        Index('idx_match_founder_status', 'founder_id', 'status'),
        Index('idx_match_builder_status', 'builder_id', 'status'),
        Index('idx_match_opening_status', 'opening_id', 'status'),
        Index('idx_match_score', 'compatibility_score'),
        Index('idx_match_mutual', 'is_mutual'),
    )
