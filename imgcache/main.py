import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imgcache import config
from imgcache.routers.cache_entries import metadata_router
from imgcache.routers.cache_entries import router as cache_router


def create_app() -> FastAPI:
	logging.basicConfig(level=config.LOG_LEVEL)
	app = FastAPI(title="imgcache - Cache Serializer API", version="0.1.0")

	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=False,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.include_router(cache_router)
	app.include_router(metadata_router)

	return app


app = create_app()


if __name__ == "__main__":
	# Local dev server: uvicorn imgcache.main:app --reload
	import uvicorn

	uvicorn.run("imgcache.main:app", host="0.0.0.0", port=8000, reload=True)
