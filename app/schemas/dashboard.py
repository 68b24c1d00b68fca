"""
Schemas del dashboard.
"""

from datetime import datetime

from pydantic import BaseModel


class DashboardStats(BaseModel):
    documents_by_status: dict[str, int]
    total_documents: int
    active_users: int
    blocked_users: int
    active_areas: int
    pending_derivations: int
    generated_at: datetime
    cached: bool = False
