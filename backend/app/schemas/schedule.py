from datetime import datetime, timedelta
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ScheduledItem(BaseModel):
    """
    A single playback slot on the channel timeline.

    Occupies the half-open interval [start, end). Instances are frozen:
    the timeline never edits an item once placed.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    media_ref: str
    start: datetime
    duration: int = Field(gt=0) # seconds

    @computed_field
    @property
    def end(self) -> datetime:
        return self.start + timedelta(seconds=self.duration)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start

    def contains(self, instant: datetime) -> bool:
        # Inclusive end: an item is still "on" at the exact instant it finishes.
        return self.start <= instant <= self.end


class ScheduleRequest(BaseModel):
    title: Optional[str] = None
    media_ref: Optional[str] = None
    start_time: Optional[str] = None # ISO-8601
    duration: Optional[Union[int, float, str]] = None


class UploadUrlRequest(BaseModel):
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    title: Optional[str] = None
    start_time: Optional[str] = None # ISO-8601
    duration: Optional[Union[int, float, str]] = None


class PlacementResponse(BaseModel):
    video: ScheduledItem
    schedule: List[ScheduledItem]


class UploadUrlResponse(PlacementResponse):
    upload_url: str
    key: str
