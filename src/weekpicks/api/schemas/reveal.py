from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel


class SubmittedParticipantResponse(BaseModel):
    participant_id: str
    label: str


class RevealStatusResponse(BaseModel):
    viewer_submitted_complete: bool
    past_deadline: bool
    can_view: bool
    submitted_participant_ids: List[str]
    submitted_participants: List[SubmittedParticipantResponse]
    total_participants: int
    submitted_count: int
    deadline_at: datetime | None
    all_submitted: bool
    reason: Literal["all_submitted", "past_kickoff", "not_revealed"]
