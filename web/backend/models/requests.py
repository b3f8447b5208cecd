#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, Field


class MatchActionRequest(BaseModel):
    """Request to record an action on a match."""
    action: str = Field(..., description="Action: LIKE, SKIP or SAVE")
