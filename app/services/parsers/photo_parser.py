import re
import logging
from typing import List, Optional

from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import InvalidPhotoError

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r'^data:(.+);base64,(.+)$', re.DOTALL)


class PhotoPayload(BaseModel):
    """A client-supplied image, already base64 encoded"""
    media_type: str
    data: str

    def to_content_block(self) -> dict:
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": self.media_type, "data": self.data}
        }


def decode_photo_payloads(photos: List[str], limit: Optional[int] = None) -> List[PhotoPayload]:
    """
    Parse data URIs into image payloads.

    Only the first ``limit`` entries are considered; entries that are not
    base64 data URIs are skipped.

    Raises:
        InvalidPhotoError: none of the considered entries is a usable image.
    """
    limit = limit or settings.MAX_PHOTOS
    considered = (photos or [])[:limit]

    payloads = []
    for photo in considered:
        match = DATA_URI_PATTERN.match(photo or "")
        if match:
            payloads.append(PhotoPayload(media_type=match.group(1), data=match.group(2)))

    if len(payloads) < len(considered):
        logger.info(f"Skipped {len(considered) - len(payloads)} photos that were not base64 data URIs")

    if not payloads:
        raise InvalidPhotoError("No valid photo payloads", stage="fetching")

    return payloads
