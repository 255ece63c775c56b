"""
Immutable configuration value objects for sessions and tokens.

The merge table below declares how each session property behaves when a
server snapshot is reconciled into an existing local configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .enums import MediaMode, OutputMode, RecordingLayout, RecordingMode, Role


@dataclass(frozen=True)
class SessionProperties:
    media_mode: MediaMode = MediaMode.ROUTED
    recording_mode: RecordingMode = RecordingMode.MANUAL
    default_output_mode: OutputMode = OutputMode.COMPOSED
    default_recording_layout: RecordingLayout = RecordingLayout.BEST_FIT
    default_custom_layout: str = ""
    custom_session_id: str = ""

    def to_request(self) -> dict:
        """
        Body of the session creation request.
        """

        return {
            "mediaMode": str(self.media_mode),
            "recordingMode": str(self.recording_mode),
            "defaultOutputMode": str(self.default_output_mode),
            "defaultRecordingLayout": str(self.default_recording_layout),
            "defaultCustomLayout": self.default_custom_layout,
            "customSessionId": self.custom_session_id,
        }


@dataclass(frozen=True)
class KurentoOptions:
    """Media-relay limits attached to a token."""

    video_max_recv_bandwidth: Optional[int] = None
    video_min_recv_bandwidth: Optional[int] = None
    video_max_send_bandwidth: Optional[int] = None
    video_min_send_bandwidth: Optional[int] = None
    allowed_filters: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {}
        if self.video_max_recv_bandwidth is not None:
            payload["videoMaxRecvBandwidth"] = int(self.video_max_recv_bandwidth)
        if self.video_min_recv_bandwidth is not None:
            payload["videoMinRecvBandwidth"] = int(self.video_min_recv_bandwidth)
        if self.video_max_send_bandwidth is not None:
            payload["videoMaxSendBandwidth"] = int(self.video_max_send_bandwidth)
        if self.video_min_send_bandwidth is not None:
            payload["videoMinSendBandwidth"] = int(self.video_min_send_bandwidth)
        if self.allowed_filters:
            payload["allowedFilters"] = list(self.allowed_filters)
        return payload


@dataclass(frozen=True)
class TokenOptions:
    role: Role = Role.PUBLISHER
    data: str = ""
    kurento_options: Optional[KurentoOptions] = None


class MergePolicy(str, Enum):
    """How a property is refreshed from a server snapshot."""

    OVERWRITE = "overwrite"
    OVERWRITE_IF_PRESENT = "overwrite_if_present"
    LOCAL_WINS = "local_wins"


# property name -> (snapshot key, policy)
MERGE_TABLE: Dict[str, Tuple[str, MergePolicy]] = {
    "media_mode": ("mediaMode", MergePolicy.OVERWRITE),
    "recording_mode": ("recordingMode", MergePolicy.OVERWRITE),
    "default_output_mode": ("defaultOutputMode", MergePolicy.OVERWRITE),
    "default_recording_layout": ("defaultRecordingLayout", MergePolicy.OVERWRITE_IF_PRESENT),
    "default_custom_layout": ("defaultCustomLayout", MergePolicy.OVERWRITE_IF_PRESENT),
    "custom_session_id": ("customSessionId", MergePolicy.LOCAL_WINS),
}


def merge_properties(current: SessionProperties, incoming: Mapping[str, Any]) -> SessionProperties:
    """
    Return ``current`` refreshed with the parsed values in ``incoming``.

    ``incoming`` is keyed by property name and only contains the values the
    snapshot carried; values must already be parsed to their property types.
    """

    updates: Dict[str, Any] = {}
    for name, (_, policy) in MERGE_TABLE.items():
        present = incoming.get(name) is not None
        if policy is MergePolicy.OVERWRITE:
            if not present:
                raise KeyError(name)
            updates[name] = incoming[name]
        elif policy is MergePolicy.OVERWRITE_IF_PRESENT:
            if present:
                updates[name] = incoming[name]
        elif policy is MergePolicy.LOCAL_WINS:
            if not getattr(current, name) and present:
                updates[name] = incoming[name]
    return replace(current, **updates)


__all__ = [
    "KurentoOptions",
    "MERGE_TABLE",
    "MergePolicy",
    "SessionProperties",
    "TokenOptions",
    "merge_properties",
]
