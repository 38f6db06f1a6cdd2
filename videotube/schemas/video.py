from datetime import datetime
from uuid import UUID
from videotube.schemas.common import CamelModel


class VideoOwner(CamelModel):
    full_name: str
    username: str
    avatar: str


class WatchedVideo(CamelModel):
    id: UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime | None = None
    owner: VideoOwner
