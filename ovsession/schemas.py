"""
Pydantic schemas mirroring the media server REST payloads.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PublisherModel(BaseModel):
    streamId: str = Field(min_length=1)
    createdAt: Optional[int] = None
    mediaOptions: Dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(extra="ignore")


class SubscriberModel(BaseModel):
    streamId: str = Field(min_length=1)
    publisher: Optional[str] = None
    createdAt: Optional[int] = None
    model_config = ConfigDict(extra="ignore")


class ConnectionModel(BaseModel):
    connectionId: str = Field(min_length=1)
    createdAt: Optional[int] = None
    role: Optional[str] = None
    token: Optional[str] = None
    location: Optional[str] = None
    platform: Optional[str] = None
    serverData: Optional[str] = None
    clientData: Optional[str] = None
    publishers: List[PublisherModel] = Field(default_factory=list)
    subscribers: List[SubscriberModel] = Field(default_factory=list)
    model_config = ConfigDict(extra="ignore")

    @field_validator("subscribers", mode="before")
    @classmethod
    def _expand_stream_ids(cls, value: Any) -> Any:
        # Older servers list subscriptions as bare stream ids.
        if isinstance(value, list):
            return [{"streamId": item} if isinstance(item, str) else item for item in value]
        return value


class ConnectionPageModel(BaseModel):
    numberOfElements: int = 0
    content: List[Dict[str, Any]]


class SessionSnapshotModel(BaseModel):
    sessionId: str = Field(min_length=1)
    createdAt: Optional[int] = None
    recording: bool
    mediaMode: str
    recordingMode: str
    defaultOutputMode: str
    defaultRecordingLayout: Optional[str] = None
    defaultCustomLayout: Optional[str] = None
    customSessionId: Optional[str] = None
    connections: ConnectionPageModel
    model_config = ConfigDict(extra="ignore")


class SessionListModel(BaseModel):
    numberOfElements: int = 0
    content: List[Dict[str, Any]] = Field(default_factory=list)
