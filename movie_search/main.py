import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from movie_search.config import settings
from movie_search.errors import PipelineError
from movie_search.routers import recommend

# --- LOGGING CONFIGURATION ---
logging.basicConfig(level=settings.LOG_LEVEL.upper(), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- APP CONFIGURATION ---
app = FastAPI(title="Movie Search", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- ERROR MAPPING ---
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Request binding error: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request format"})


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error: {exc!r}")
    return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc!r}"})


# --- ROUTERS ---
app.include_router(recommend.router)


@app.get("/")
def health_check():
    return {"status": "online"}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
