# Run from project root: uvicorn uploader.main:app --reload

import logging

from fastapi import FastAPI

from uploader.api.routes import router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="File Uploader")
app.include_router(router)
