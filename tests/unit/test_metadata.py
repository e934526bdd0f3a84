"""Unit tests for the EXIF user comment reader and patcher."""

import unittest
from unittest.mock import patch

import numpy as np
import piexif
import piexif.helper

from imgcache.services.errors import EncodeError, ParseError
from imgcache.services.metadata import (
	embed_user_comment,
	extract_user_comment,
	read_metadata_block,
	write_metadata_block,
)
from imgcache.services.models import MetadataBlock
from tests.utils.image_util import (
	decode_pixels,
	encode,
	gif_bytes,
	gradient_image,
	jpeg_bytes,
	jpeg_with_numeric_user_comment,
	oversized_png_header,
	png_bytes,
)

METADATA_PATH = "imgcache.services.metadata"


class ExtractUserCommentTest(unittest.TestCase):
	def test_reads_ascii_comment(self):
		self.assertEqual(extract_user_comment(jpeg_bytes(user_comment="hello")), "hello")

	def test_reads_unicode_comment(self):
		data = embed_user_comment(jpeg_bytes(), "café ☕")
		self.assertEqual(extract_user_comment(data), "café ☕")

	def test_undefined_charset_falls_back_to_utf8(self):
		exif = {"Exif": {piexif.ExifIFD.UserComment: b"\x00" * 8 + b"plain\x00"}}
		data = encode(gradient_image(), "JPEG", exif=piexif.dump(exif))
		self.assertEqual(extract_user_comment(data), "plain")

	def test_missing_metadata_block_is_empty(self):
		self.assertEqual(extract_user_comment(jpeg_bytes()), "")

	def test_exif_without_comment_is_empty(self):
		exif = {"0th": {piexif.ImageIFD.Software: b"imgcache"}}
		data = encode(gradient_image(), "JPEG", exif=piexif.dump(exif))
		self.assertEqual(extract_user_comment(data), "")

	def test_other_containers_without_exif_are_empty(self):
		self.assertEqual(extract_user_comment(png_bytes()), "")
		self.assertEqual(extract_user_comment(gif_bytes()), "")

	def test_png_exif_chunk_is_read(self):
		exif = {"Exif": {piexif.ExifIFD.UserComment: piexif.helper.UserComment.dump("from png")}}
		data = encode(gradient_image(), "PNG", exif=piexif.dump(exif))
		self.assertEqual(extract_user_comment(data), "from png")

	def test_prefixless_comment_is_read_whole(self):
		exif = {"Exif": {piexif.ExifIFD.UserComment: b"hello world from camera"}}
		data = encode(gradient_image(), "JPEG", exif=piexif.dump(exif))
		self.assertEqual(extract_user_comment(data), "hello world from camera")

	def test_numeric_comment_tag_is_empty(self):
		data = jpeg_with_numeric_user_comment()
		self.assertEqual(piexif.load(data)["Exif"][piexif.ExifIFD.UserComment], 400)
		self.assertEqual(extract_user_comment(data), "")

	def test_decompression_bomb_is_empty(self):
		self.assertEqual(extract_user_comment(oversized_png_header()), "")

	def test_garbage_never_raises(self):
		self.assertEqual(extract_user_comment(bytes(64)), "")
		self.assertEqual(extract_user_comment(b""), "")
		self.assertEqual(extract_user_comment(b"\xff\xd8\xff\xe1\x00"), "")


class EmbedUserCommentTest(unittest.TestCase):
	def setUp(self):
		self.jpeg = jpeg_bytes()

	def test_empty_comment_is_a_no_op(self):
		self.assertIs(embed_user_comment(self.jpeg, ""), self.jpeg)

	def test_comment_round_trips(self):
		data = embed_user_comment(self.jpeg, "test")
		self.assertNotEqual(data, self.jpeg)
		self.assertEqual(extract_user_comment(data), "test")

	def test_pixels_are_untouched(self):
		data = embed_user_comment(self.jpeg, "test")
		np.testing.assert_array_equal(decode_pixels(data), decode_pixels(self.jpeg))

	def test_other_fields_are_preserved(self):
		exif = {
			"0th": {piexif.ImageIFD.Software: b"imgcache"},
			"Exif": {piexif.ExifIFD.UserComment: piexif.helper.UserComment.dump("old"), piexif.ExifIFD.ISOSpeedRatings: 400},
		}
		source = encode(gradient_image(), "JPEG", exif=piexif.dump(exif))
		data = embed_user_comment(source, "new")
		loaded = piexif.load(data)
		self.assertEqual(loaded["0th"][piexif.ImageIFD.Software], b"imgcache")
		self.assertEqual(loaded["Exif"][piexif.ExifIFD.ISOSpeedRatings], 400)
		self.assertEqual(extract_user_comment(data), "new")

	def test_container_format_is_preserved(self):
		self.assertTrue(embed_user_comment(self.jpeg, "test").startswith(b"\xff\xd8"))

	def test_unpatchable_container_is_returned_unchanged(self):
		png = png_bytes()
		self.assertIs(embed_user_comment(png, "test"), png)

	def test_garbage_is_returned_unchanged(self):
		garbage = bytes(32)
		self.assertIs(embed_user_comment(garbage, "test"), garbage)

	def test_decompression_bomb_is_returned_unchanged(self):
		png = oversized_png_header()
		self.assertIs(embed_user_comment(png, "x"), png)

	def test_numeric_comment_tag_is_replaced(self):
		data = embed_user_comment(jpeg_with_numeric_user_comment(), "fixed")
		self.assertEqual(extract_user_comment(data), "fixed")

	def test_destination_failure_falls_back_to_input(self):
		with patch(f"{METADATA_PATH}.piexif.insert", side_effect=ValueError("boom")):
			self.assertIs(embed_user_comment(self.jpeg, "test"), self.jpeg)


class MetadataBlockCodecTest(unittest.TestCase):
	def test_read_creates_empty_groups(self):
		block = read_metadata_block(jpeg_bytes())
		self.assertIsNone(block.user_comment)
		self.assertEqual(block.exif, {})
		self.assertEqual(block.gps, {})

	def test_read_rejects_non_images(self):
		with self.assertRaises(ParseError):
			read_metadata_block(bytes(16))

	def test_write_rejects_png(self):
		with self.assertRaises(EncodeError):
			write_metadata_block(png_bytes(), MetadataBlock.empty())

	def test_ensure_groups_fills_missing_groups(self):
		block = MetadataBlock(groups={"0th": {}})
		block.ensure_groups()
		self.assertEqual(block.groups["Exif"], {})
		self.assertEqual(block.groups["GPS"], {})


if __name__ == "__main__":
	unittest.main()
