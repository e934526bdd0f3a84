"""Per-format encoders for cache entries.

Each function returns the encoded bytes, or None when Pillow cannot produce
output for the given image (zero-sized bitmaps, unsupported modes, codec errors).
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import List, Optional

from PIL import Image

from imgcache import config
from imgcache.services.errors import EncodeError
from imgcache.services.models import DecodedImage

logger = logging.getLogger(__name__)

JPEG_MODES = ("RGB", "L", "CMYK")


def _check_size(img: Image.Image) -> None:
	if img.width <= 0 or img.height <= 0:
		raise EncodeError(f"cannot encode a {img.width}x{img.height} image")


def _save(img: Image.Image, fmt: str, **params) -> bytes:
	_check_size(img)
	buf = BytesIO()
	try:
		img.save(buf, format=fmt, **params)
	except (OSError, ValueError, SystemError) as e:
		raise EncodeError(f"{fmt} encoder failed: {e}") from e
	return buf.getvalue()


def _jpeg_ready(img: Image.Image) -> Image.Image:
	if img.mode in JPEG_MODES:
		return img
	if img.mode in ("LA", "I;16", "I", "F"):
		return img.convert("L")
	# JPEG has no alpha; it is dropped rather than composited
	return img.convert("RGB")


def png_representation(image: DecodedImage) -> Optional[bytes]:
	try:
		return _save(image.image, "PNG")
	except EncodeError as e:
		logger.warning("PNG representation unavailable: %s", e)
		return None


def jpeg_representation(image: DecodedImage, quality: int = config.JPEG_QUALITY) -> Optional[bytes]:
	try:
		return _save(_jpeg_ready(image.image), "JPEG", quality=quality)
	except EncodeError as e:
		logger.warning("JPEG representation unavailable: %s", e)
		return None


def gif_representation(image: DecodedImage) -> Optional[bytes]:
	frames: List[Image.Image] = list(image.iter_frames())
	if not frames:
		return None
	durations = [int(f.info.get("duration") or config.GIF_DEFAULT_DURATION_MS) for f in frames]
	loop = image.image.info.get("loop", config.GIF_DEFAULT_LOOP)
	params = {"loop": loop}
	if len(frames) > 1:
		params.update(save_all=True, append_images=frames[1:], duration=durations)
	elif "duration" in frames[0].info:
		params["duration"] = durations[0]
	try:
		return _save(frames[0], "GIF", **params)
	except EncodeError as e:
		logger.warning("GIF representation unavailable: %s", e)
		return None
