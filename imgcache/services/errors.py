from __future__ import annotations


class SerializerError(Exception):
	"""Base class for failures inside a cache serializer step."""


class ParseError(SerializerError):
	"""The bytes could not be read as an image container or metadata block."""


class EncodeError(SerializerError):
	"""An image or metadata block could not be written to bytes."""
