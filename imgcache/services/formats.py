from __future__ import annotations

from enum import Enum
from typing import Callable, Optional


class ImageFormat(str, Enum):
	PNG = "png"
	JPEG = "jpeg"
	GIF = "gif"
	UNKNOWN = "unknown"

	@property
	def media_type(self) -> str:
		return _MEDIA_TYPES[self]


_MEDIA_TYPES = {
	ImageFormat.PNG: "image/png",
	ImageFormat.JPEG: "image/jpeg",
	ImageFormat.GIF: "image/gif",
	ImageFormat.UNKNOWN: "application/octet-stream",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")

FormatSniffer = Callable[[bytes], ImageFormat]


def sniff_format(data: Optional[bytes]) -> ImageFormat:
	"""Infer the container format from the leading magic bytes."""
	if not data:
		return ImageFormat.UNKNOWN
	head = bytes(data[:8])
	if head == PNG_SIGNATURE:
		return ImageFormat.PNG
	if head.startswith(JPEG_SIGNATURE):
		return ImageFormat.JPEG
	if head[:6] in GIF_SIGNATURES:
		return ImageFormat.GIF
	return ImageFormat.UNKNOWN


def is_webp(data: bytes) -> bool:
	return data[0:4] == b"RIFF" and data[8:12] == b"WEBP"


def is_tiff(data: bytes) -> bool:
	return data[0:4] in (b"II*\x00", b"MM\x00*")
