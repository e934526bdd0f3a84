from __future__ import annotations

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile

from imgcache.services.formats import sniff_format
from imgcache.services.metadata import embed_user_comment, extract_user_comment
from imgcache.services.models import DecodeOptions
from imgcache.services.serializer import DefaultCacheSerializer


router = APIRouter(prefix="/cache", tags=["cache"])
metadata_router = APIRouter(prefix="/metadata", tags=["metadata"])

serializer = DefaultCacheSerializer()


@router.post("/encode", summary="Serialize a downloaded image into a cache entry")
async def encode(file: UploadFile = File(...)):
	original = await file.read()
	# keep every frame so GIF entries stay animated
	image = serializer.decode(original, DecodeOptions(preload_all_animation_data=True))
	if image is None:
		raise HTTPException(status_code=422, detail="upload is not a decodable image")
	data = serializer.encode(image, original)
	if data is None:
		raise HTTPException(status_code=422, detail="image has no cacheable representation")
	return Response(content=data, media_type=sniff_format(data).media_type)


@router.post("/decode", summary="Deserialize a cache entry and describe the image")
async def decode(
	file: UploadFile = File(...),
	scale_factor: float = Form(1.0),
	preload_all_animation_data: bool = Form(False),
	only_load_first_frame: bool = Form(False),
):
	data = await file.read()
	try:
		options = DecodeOptions(
			scale_factor=scale_factor,
			preload_all_animation_data=preload_all_animation_data,
			only_load_first_frame=only_load_first_frame,
		)
	except ValueError as e:
		raise HTTPException(status_code=422, detail=str(e))
	image = serializer.decode(data, options)
	if image is None:
		raise HTTPException(status_code=422, detail="cache entry is corrupt or unsupported")
	return {
		"format": sniff_format(data).value,
		"width": image.width,
		"height": image.height,
		"mode": image.image.mode,
		"scale": image.scale,
		"frame_count": image.frame_count,
		"preloaded": image.preloaded,
	}


@metadata_router.post("/user-comment", summary="Read the EXIF user comment")
async def user_comment(file: UploadFile = File(...)):
	data = await file.read()
	return {"user_comment": extract_user_comment(data)}


@metadata_router.post("/user-comment/embed", summary="Write the EXIF user comment")
async def embed(file: UploadFile = File(...), comment: str = Form("")):
	data = await file.read()
	patched = embed_user_comment(data, comment)
	return Response(content=patched, media_type=sniff_format(patched).media_type)
