"""Provider-agnostic prompt representation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

_DATA_URL_RE = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


@dataclass(slots=True, frozen=True)
class ImageContent:
    """One inline image: raw base64 payload, never a ``data:`` URL."""

    mime_type: str
    base64: str

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


@dataclass(slots=True, frozen=True)
class Message:
    """System text, user text and ordered images for one provider call.

    Image order is meaningful: reference-document images must come before
    the target-document images they describe.
    """

    system_text: str = ""
    user_text: str = ""
    images: tuple[ImageContent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.images, tuple):
            object.__setattr__(self, "images", tuple(self.images))

    @property
    def payload_bytes(self) -> int:
        """Base64 size of all images, used for size metadata in logs."""
        return sum(len(image.base64) for image in self.images)

    @property
    def input_chars(self) -> int:
        return len(self.system_text) + len(self.user_text)

    def with_images(self, images: Iterable[ImageContent]) -> Message:
        return Message(self.system_text, self.user_text, tuple(images))


def parse_data_url(value: str) -> ImageContent | None:
    """Split ``data:<mime>;base64,<payload>`` into an ImageContent."""
    if not isinstance(value, str):
        return None
    match = _DATA_URL_RE.match(value.strip())
    if not match:
        return None
    return ImageContent(mime_type=match.group(1), base64=match.group(2))


def images_from_data_urls(values: Iterable[str]) -> list[ImageContent]:
    """Parse data URLs in order, dropping entries that are not data URLs."""
    images: list[ImageContent] = []
    for value in values:
        image = parse_data_url(value)
        if image is not None:
            images.append(image)
    return images
