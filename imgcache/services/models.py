from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import piexif
from PIL import Image, ImageSequence


@dataclass(frozen=True)
class DecodeOptions:
	"""Per-call options for turning cached bytes back into an image."""

	scale_factor: float = 1.0
	preload_all_animation_data: bool = False
	only_load_first_frame: bool = False

	def __post_init__(self) -> None:
		if not self.scale_factor > 0:
			raise ValueError(f"scale_factor must be positive, got {self.scale_factor!r}")


EMPTY_DECODE_OPTIONS = DecodeOptions()


@dataclass
class DecodedImage:
	"""A decoded bitmap plus its display scale.

	`frames` is None while animation frames are still read lazily from `image`;
	once materialised it holds one independent copy per frame.
	"""

	image: Image.Image
	scale: float = 1.0
	frames: Optional[List[Image.Image]] = None

	@classmethod
	def from_pil(cls, img: Image.Image, scale: float = 1.0) -> "DecodedImage":
		return cls(image=img, scale=scale)

	@property
	def width(self) -> int:
		return self.image.width

	@property
	def height(self) -> int:
		return self.image.height

	@property
	def size(self) -> Tuple[int, int]:
		return self.image.size

	@property
	def point_size(self) -> Tuple[float, float]:
		return (self.width / self.scale, self.height / self.scale)

	@property
	def preloaded(self) -> bool:
		return self.frames is not None

	@property
	def frame_count(self) -> int:
		if self.frames is not None:
			return len(self.frames)
		return int(getattr(self.image, "n_frames", 1))

	@property
	def is_animated(self) -> bool:
		return self.frame_count > 1

	def iter_frames(self) -> Iterator[Image.Image]:
		if self.frames is not None:
			yield from self.frames
			return
		if self.frame_count == 1:
			yield self.image
			return
		# lazy path: walk the source, then rewind so the first frame stays current
		try:
			for frame in ImageSequence.Iterator(self.image):
				yield frame.copy()
		finally:
			self.image.seek(0)


@dataclass
class MetadataBlock:
	"""Nested metadata as laid out by piexif: group name -> {tag id -> value}.

	Only the Exif and GPS groups are addressed by name; every other group
	(0th, Interop, 1st, thumbnail) is carried through untouched.
	"""

	groups: Dict[str, Any] = field(default_factory=dict)

	EXIF = "Exif"
	GPS = "GPS"

	@classmethod
	def empty(cls) -> "MetadataBlock":
		return cls(groups={"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None})

	@property
	def exif(self) -> Dict[int, Any]:
		group = self.groups.get(self.EXIF)
		if group is None:
			group = self.groups[self.EXIF] = {}
		return group

	@property
	def gps(self) -> Dict[int, Any]:
		group = self.groups.get(self.GPS)
		if group is None:
			group = self.groups[self.GPS] = {}
		return group

	def ensure_groups(self) -> None:
		"""Create the Exif and GPS groups when the container had none."""
		for name in (self.EXIF, self.GPS):
			if self.groups.get(name) is None:
				self.groups[name] = {}

	@property
	def user_comment(self) -> Optional[bytes]:
		group = self.groups.get(self.EXIF) or {}
		return group.get(piexif.ExifIFD.UserComment)

	@user_comment.setter
	def user_comment(self, raw: bytes) -> None:
		self.exif[piexif.ExifIFD.UserComment] = raw

	def to_piexif(self) -> Dict[str, Any]:
		out = dict(self.groups)
		out.setdefault("thumbnail", None)
		return out
