from fastapi import FastAPI, Request
from api.schedule import router as schedule_router
from api.healthcheck import router as healthcheck_router
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import os

load_dotenv()
# env
CORS_ALLOW_ORIGINS = [o for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o]
ALLOWED_HOSTS = [h for h in os.getenv("ALLOWED_HOSTS", "").split(",") if h] or ["*"]
MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", "0"))  # 0 = no limit

# app
app = FastAPI(
    title="Work Schedule API",
    description="Upload the team's test schedule spreadsheet and read the shared schedule views.",
)

# middlewares
if os.getenv("ENABLE_CORS") == "true":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# allowed hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=ALLOWED_HOSTS)


# basic request size guard (blocks oversized spreadsheets early)
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    if MAX_BODY_BYTES > 0:
        cl = request.headers.get("content-length")
        if cl and cl.isdigit() and int(cl) > MAX_BODY_BYTES:
            return JSONResponse(
                status_code=413, content={"detail": "Payload too large"}
            )
    return await call_next(request)


@app.get("/")
def root():
    return {"message": "Work Schedule API is running. Visit /docs for the Swagger UI."}


# Register routers
app.include_router(schedule_router, prefix="/api")
app.include_router(healthcheck_router, prefix="/api")
