import logging

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from poster_shop import config
from poster_shop.database import Base, engine, get_db
from poster_shop.errors import PosterShopError
from poster_shop.notifier import get_notifier
from poster_shop.routes import router
from poster_shop.webhooks import handle_event

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Jay's Frames Poster Orders")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)

config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")

Base.metadata.create_all(bind=engine)


@app.exception_handler(PosterShopError)
async def poster_shop_error_handler(request: Request, exc: PosterShopError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.post("/api/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
):
    payload = await request.body()
    # database and SMTP work is blocking; keep it off the event loop
    return await run_in_threadpool(handle_event, db, payload, stripe_signature, notifier)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
