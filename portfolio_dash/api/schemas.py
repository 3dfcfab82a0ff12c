from pydantic import BaseModel
from typing import Optional, Literal, List

class HoldingRequest(BaseModel):
    ticker: str
    amount: float

class HoldingResponse(BaseModel):
    ticker: str
    amount: float

class NotificationOut(BaseModel):
    level: Literal['success', 'error']
    message: str
    created_at: str

class HealthResponse(BaseModel):
    ok: bool
    market_loaded: bool
    holdings: int
    generation: int
    last_built_at: Optional[str] = None

class NotificationsResponse(BaseModel):
    notifications: List[NotificationOut]
