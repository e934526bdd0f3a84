"""Convert decoded images to disk-cache bytes and back."""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Union

from PIL import Image, ImageSequence

from imgcache import config
from imgcache.services.formats import FormatSniffer, ImageFormat, sniff_format
from imgcache.services.image_utils import DECODE_ERRORS, normalize_image
from imgcache.services.metadata import embed_user_comment, extract_user_comment
from imgcache.services.models import EMPTY_DECODE_OPTIONS, DecodedImage, DecodeOptions
from imgcache.services.representations import gif_representation, jpeg_representation, png_representation

logger = logging.getLogger(__name__)

class CacheSerializer(abc.ABC):
	"""Turns an image into bytes for the disk cache, and cached bytes back into an image."""

	@abc.abstractmethod
	def encode(self, image: Union[DecodedImage, Image.Image], original: Optional[bytes] = None) -> Optional[bytes]:
		"""Serialize `image` for caching.

		`original` is the freshly downloaded payload, or None when the image
		itself came from the cache. Returns None when nothing should be cached.
		"""

	@abc.abstractmethod
	def decode(self, data: bytes, options: Optional[DecodeOptions] = None) -> Optional[DecodedImage]:
		"""Deserialize cached bytes, or return None when they are not a usable image."""


@dataclass(frozen=True)
class DefaultCacheSerializer(CacheSerializer):
	"""Serializes PNG, JPEG and GIF in their own format; anything else is kept
	as the original payload or written as a normalized PNG."""

	format_sniffer: FormatSniffer = sniff_format
	jpeg_quality: int = config.JPEG_QUALITY
	copy_user_comment: bool = True

	def encode(self, image, original=None):
		if image is None:
			raise TypeError("image is required")
		if isinstance(image, Image.Image):
			image = DecodedImage.from_pil(image)
		image_format = self.format_sniffer(original) if original else ImageFormat.UNKNOWN
		logger.debug("Encoding %dx%d image as %s", image.width, image.height, image_format.value)

		if image_format == ImageFormat.PNG:
			data = png_representation(image)
		elif image_format == ImageFormat.JPEG:
			data = self.add_user_comment_to_jpeg(jpeg_representation(image, self.jpeg_quality), original)
		elif image_format == ImageFormat.GIF:
			data = gif_representation(image)
		elif original is not None:
			data = original
		else:
			data = png_representation(DecodedImage(image=normalize_image(image.image), scale=image.scale))

		if data is None:
			logger.debug("No cacheable representation for %s image", image_format.value)
		return data

	def add_user_comment_to_jpeg(self, jpeg: Optional[bytes], original: Optional[bytes]) -> Optional[bytes]:
		"""Carry the EXIF user comment of `original` over to re-encoded `jpeg` bytes."""
		if jpeg is None or original is None or not self.copy_user_comment:
			return jpeg
		comment = extract_user_comment(original, show_log=True)
		if comment == "":
			return jpeg
		return embed_user_comment(jpeg, comment)

	def decode(self, data, options=None):
		options = options or EMPTY_DECODE_OPTIONS
		if not data:
			return None
		try:
			img = Image.open(BytesIO(data))
			img.load()
			if options.only_load_first_frame:
				img.seek(0)
				return DecodedImage(image=img.copy(), scale=options.scale_factor, frames=None)
			decoded = DecodedImage(image=img, scale=options.scale_factor)
			if options.preload_all_animation_data:
				decoded.frames = [frame.copy() for frame in ImageSequence.Iterator(img)]
				img.seek(0)
		except DECODE_ERRORS as e:
			logger.warning("Cached data is not a usable %s image: %s", self.format_sniffer(data).value, e)
			return None
		return decoded
