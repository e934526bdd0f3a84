from __future__ import annotations

import numpy as np
from PIL import ExifTags, Image, UnidentifiedImageError

ORIENTATION_TAG = 0x0112

# what Pillow raises for bytes that are not a usable image
DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError)


def apply_exif_orientation(img: Image.Image, exif) -> Image.Image:
	orientation = None
	if exif:
		tmp = {}
		for tag_id, value in exif.items():
			tag = ExifTags.TAGS.get(tag_id, tag_id)
			tmp[str(tag)] = value
		orientation = tmp.get("Orientation")
	if orientation is None:
		return img
	try:
		o = int(orientation)
	except (TypeError, ValueError):
		return img
	if o == 1:
		return img
	if o == 2:
		return img.transpose(Image.FLIP_LEFT_RIGHT)
	if o == 3:
		return img.rotate(180, expand=True)
	if o == 4:
		return img.transpose(Image.FLIP_TOP_BOTTOM)
	if o == 5:
		return img.transpose(Image.FLIP_LEFT_RIGHT).rotate(90, expand=True)
	if o == 6:
		return img.rotate(270, expand=True)
	if o == 7:
		return img.transpose(Image.FLIP_LEFT_RIGHT).rotate(270, expand=True)
	if o == 8:
		return img.rotate(90, expand=True)
	return img


def has_transparency(img: Image.Image) -> bool:
	"""True when at least one pixel is not fully opaque."""
	if img.mode == "P":
		if "transparency" not in img.info:
			return False
		img = img.convert("RGBA")
	if img.mode in ("LA", "PA"):
		img = img.convert("RGBA")
	if img.mode != "RGBA":
		return "transparency" in img.info
	alpha = np.asarray(img.getchannel("A"))
	return bool(alpha.size) and int(alpha.min()) < 255


def normalize_image(img: Image.Image) -> Image.Image:
	"""Redraw an image upright in a canonical mode (RGBA if it needs alpha, RGB otherwise)."""
	img = apply_exif_orientation(img, img.getexif())
	target = "RGBA" if has_transparency(img) else "RGB"
	if img.mode != target:
		img = img.convert(target)
	else:
		img = img.copy()
	# orientation is now baked into the pixels
	img.info.pop("exif", None)
	return img
