from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from uuid import UUID
from datetime import datetime

from wayfarer.core.itinerary_text import ActivityCategory, Activity, DayPlan, icon_for_category
from wayfarer.core.reorder import DropPosition
from wayfarer.db.models import UserStatus

SUSPICIOUS_PATTERNS = ['<script>', 'javascript:', 'data:text/html']

# ===== USER / AUTH SCHEMAS =====

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Username")
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password")

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip().lower()

class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Refresh token")

class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: EmailStr
    status: UserStatus
    created_at: datetime
    updated_at: datetime
    is_active: bool

class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: int

# ===== PARSED ITINERARY SCHEMAS =====

class ActivityRead(BaseModel):
    time: str
    location: str
    description: str
    category: ActivityCategory
    icon: str

    @classmethod
    def from_activity(cls, activity: Activity) -> "ActivityRead":
        return cls(
            time=activity.time,
            location=activity.location,
            description=activity.description,
            category=activity.category,
            icon=icon_for_category(activity.category),
        )

class DayPlanRead(BaseModel):
    title: str
    content: str
    activities: List[ActivityRead] = []

    @classmethod
    def from_day(cls, day: DayPlan) -> "DayPlanRead":
        return cls(
            title=day.title,
            content=day.content,
            activities=[ActivityRead.from_activity(a) for a in day.activities],
        )

class ParseRequest(BaseModel):
    text: str = Field(..., description="Itinerary text with Day N headings")

class ParseResponse(BaseModel):
    days: List[DayPlanRead]
    activity_count: int

# ===== ITINERARY SCHEMAS =====

class DayInput(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = ""

class ItineraryCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    destinations: List[str] = []
    preferences: List[str] = []
    days: Optional[int] = Field(None, ge=1)
    itinerary: List[DayInput] = Field(default_factory=list, description="One entry per day")

    @field_validator('destinations', 'preferences')
    @classmethod
    def strip_blank(cls, v):
        return [item.strip() for item in v if item and item.strip()]

class ItineraryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    user_id: Optional[UUID] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime

class ItineraryCreateResponse(BaseModel):
    success: bool
    itinerary: ItineraryRead
    extracted_activities: int
    message: str

class ReorderRequest(BaseModel):
    source_day_index: int = Field(..., ge=0)
    source_activity_index: int = Field(..., ge=0)
    target_day_index: int = Field(..., ge=0)
    target_activity_index: int = Field(..., ge=0)
    position: DropPosition = DropPosition.AFTER

class ReorderResponse(BaseModel):
    changed: bool
    days: List[DayPlanRead]

# ===== ITINERARY ITEM SCHEMAS =====

class ItineraryItemCreate(BaseModel):
    itinerary_id: UUID
    destination_id: Optional[UUID] = None
    day: int = Field(1, ge=1)
    position: int = Field(0, ge=0)
    notes: Optional[str] = None

class ItineraryItemUpdate(BaseModel):
    destination_id: Optional[UUID] = None
    day: Optional[int] = Field(None, ge=1)
    position: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

class ItineraryItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    itinerary_id: UUID
    destination_id: Optional[UUID] = None
    day: int
    position: int
    notes: Optional[str] = None
    created_at: datetime

# ===== DESTINATION SCHEMAS =====

class DestinationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    image_url: Optional[str] = Field(None, max_length=500)

class DestinationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    latitude: float
    longitude: float
    image_url: Optional[str] = None
    created_at: datetime

class ItineraryDestinationRead(DestinationRead):
    in_itinerary: bool

class PlaceSearchResult(BaseModel):
    id: str
    name: str
    short_name: str
    coordinates: List[float] = Field(..., description="[longitude, latitude]")

# ===== GENERATION SCHEMAS =====

class DestinationName(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

class GenerateRequest(BaseModel):
    destinations: List[DestinationName] = Field(..., min_length=1)
    preferences: List[str] = []
    days: int = Field(3, ge=1)
    tiktok_tips: Optional[List[str]] = None

    @field_validator('preferences')
    @classmethod
    def validate_preferences(cls, v):
        joined = " ".join(v).lower()
        if any(pattern in joined for pattern in SUSPICIOUS_PATTERNS):
            raise ValueError("Preferences contain invalid content")
        return v

class TikTokExtractRequest(BaseModel):
    urls: List[str] = Field(..., min_length=1)

class TikTokTip(BaseModel):
    url: str
    destination: str
    tips: str

class TikTokExtractResponse(BaseModel):
    extracted: List[TikTokTip]
