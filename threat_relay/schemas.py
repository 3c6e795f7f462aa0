import base64
import binascii
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr, model_validator

# Checked in order when an upstream result carries explicit flags
FLAG_NAMES = ("hasThreat", "isThreat", "alert", "threat", "danger")

_HEADER_MIME_TYPES = {
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/png"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data-URL into its MIME type and decoded image bytes.

    Raises ValueError when there is no comma separating the header from the
    payload, or when the payload is not valid base64.
    """
    if "," not in data_url:
        raise ValueError("imageURL must be a data URL of the form 'data:<mime>;base64,<data>'")

    header, b64 = data_url.split(",", 1)
    header = header.lower()
    mime = next((m for key, m in _HEADER_MIME_TYPES.items() if key in header), DEFAULT_MIME_TYPE)

    try:
        data = base64.b64decode(b64.strip(), validate=True)
    except binascii.Error as e:
        raise ValueError(f"imageURL payload is not valid base64: {e}") from e
    if not data:
        raise ValueError("imageURL payload is empty")
    return mime, data


# ---- Request ---- #
class ImagePayload(BaseModel):
    imageURL: str

    _mime_type: str = PrivateAttr(default=DEFAULT_MIME_TYPE)
    _data: bytes = PrivateAttr(default=b"")

    @model_validator(mode="after")
    def _check_data_url(self):
        self._mime_type, self._data = parse_data_url(self.imageURL)
        return self

    def decode(self) -> Tuple[str, bytes]:
        return self._mime_type, self._data


# ---- Upstream analysis results ---- #
class TextResult(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class FlaggedResult(BaseModel):
    kind: Literal["flagged"] = "flagged"
    flags: Dict[str, Any] = {}
    description: Optional[str] = None
    raw_text: Optional[str] = None  # the reply as the model wrote it

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], raw_text: Optional[str] = None) -> "FlaggedResult":
        """Keep only the recognised flag fields and the description."""
        flags = {name: data[name] for name in FLAG_NAMES if name in data}
        description = data.get("description")
        return cls(
            flags=flags,
            description=None if description is None else str(description),
            raw_text=raw_text,
        )


AnalysisResult = Union[TextResult, FlaggedResult]


# ---- Response ---- #
class AlertCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["THREAT_ALERT"] = "THREAT_ALERT"
    action: Literal["activate_audio_alert"] = "activate_audio_alert"
    severity: Literal["high"] = "high"
    message: str = "Threat detected. Activating audio alert."


class AnalysisResponse(BaseModel):
    description: str
    hasThreat: bool
    isThreat: bool  # alternative flag names for frontend compatibility
    alert: bool
    command: Optional[AlertCommand] = None


class ServiceInfo(BaseModel):
    message: str
