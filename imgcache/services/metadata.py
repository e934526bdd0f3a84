"""Read and rewrite the EXIF user comment of an encoded image.

Reading works on any container Pillow or piexif understands. Writing splices a
new EXIF segment into JPEG or WebP bytes; the compressed image data is copied
through as-is, so pixels never change.
"""
from __future__ import annotations

import logging
import struct
from io import BytesIO
from typing import Any, Optional

import piexif
import piexif.helper
from PIL import Image

from imgcache import config
from imgcache.services.errors import EncodeError, ParseError
from imgcache.services.formats import ImageFormat, is_tiff, is_webp, sniff_format
from imgcache.services.image_utils import DECODE_ERRORS
from imgcache.services.models import MetadataBlock

logger = logging.getLogger(__name__)

_PIEXIF_ERRORS = (ValueError, KeyError, IndexError, TypeError, struct.error)


def _bytes_to_str(v: Any) -> Optional[str]:
	if v is None:
		return None
	if isinstance(v, bytes):
		return v.decode("utf-8", errors="ignore")
	if isinstance(v, str):
		return v
	return str(v)


def _decode_user_comment(raw: Any) -> str:
	if isinstance(raw, str):
		return raw.rstrip("\x00")
	if not isinstance(raw, bytes):
		# tag written with a non-text type
		return ""
	try:
		text = piexif.helper.UserComment.load(raw)
	except (ValueError, TypeError):
		if raw[:8] == b"\x00" * 8:
			# undefined charset prefix
			raw = raw[8:]
		text = _bytes_to_str(raw) or ""
	return text.rstrip("\x00")


def _encode_user_comment(comment: str) -> bytes:
	try:
		return piexif.helper.UserComment.dump(comment, encoding=config.USER_COMMENT_ENCODING)
	except ValueError as e:
		raise EncodeError(f"comment cannot be encoded as {config.USER_COMMENT_ENCODING}: {e}") from e


def _raw_exif(data: bytes) -> Optional[bytes]:
	"""Locate the payload piexif should parse, or None when the container has none."""
	if sniff_format(data) == ImageFormat.JPEG or is_webp(data) or is_tiff(data):
		return data
	try:
		with Image.open(BytesIO(data)) as img:
			if "exif" not in img.info:
				# PNG may place eXIf after the image data
				img.load()
			raw = img.info.get("exif")
	except DECODE_ERRORS as e:
		raise ParseError(f"not an image container: {e}") from e
	if not raw:
		return None
	if not raw.startswith(b"Exif"):
		raw = b"Exif\x00\x00" + raw
	return raw


def read_metadata_block(data: bytes) -> MetadataBlock:
	if not data:
		raise ParseError("no data")
	raw = _raw_exif(data)
	if raw is None:
		return MetadataBlock.empty()
	try:
		groups = piexif.load(raw)
	except _PIEXIF_ERRORS as e:
		raise ParseError(f"unreadable metadata block: {e}") from e
	return MetadataBlock(groups=groups)


def write_metadata_block(data: bytes, block: MetadataBlock) -> bytes:
	if not (sniff_format(data) == ImageFormat.JPEG or is_webp(data)):
		raise EncodeError("container cannot carry a spliced EXIF segment")
	try:
		exif_bytes = piexif.dump(block.to_piexif())
	except _PIEXIF_ERRORS as e:
		raise EncodeError(f"metadata block could not be serialized: {e}") from e
	out = BytesIO()
	try:
		piexif.insert(exif_bytes, data, out)
	except _PIEXIF_ERRORS as e:
		raise EncodeError(f"metadata block could not be written: {e}") from e
	return out.getvalue()


def extract_user_comment(data: bytes, show_log: bool = False) -> str:
	"""Return the EXIF user comment of `data`, or "" when there is none."""
	try:
		block = read_metadata_block(data)
	except ParseError as e:
		logger.debug("No metadata block: %s", e)
		return ""
	if show_log:
		logger.debug("Metadata block: %r", block.groups)
	raw = block.user_comment
	if raw is None:
		return ""
	return _decode_user_comment(raw)


def embed_user_comment(into: bytes, comment: str) -> bytes:
	"""Write `comment` as the EXIF user comment of `into`.

	Best effort: when `into` cannot be parsed or rewritten the input is
	returned unmodified.
	"""
	if comment == "":
		return into
	try:
		block = read_metadata_block(into)
		block.ensure_groups()
		block.user_comment = _encode_user_comment(comment)
		return write_metadata_block(into, block)
	except (ParseError, EncodeError) as e:
		logger.warning("User comment not embedded, keeping original bytes: %s", e)
		return into
