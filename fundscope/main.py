import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware  # ✅ Import CORS middleware

from fundscope.core.config import settings
from fundscope.routers import funds, recommendation

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG)

# ✅ Enable CORS for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def read_root():
    return {"message": "Fundscope analytics engine is live!"}

# ✅ Register the routers under clean prefixes
app.include_router(funds.router, prefix="/funds")
app.include_router(recommendation.router, prefix="/recommendation")


if __name__ == "__main__":
    import uvicorn

    # Same as: uvicorn fundscope.main:app --reload
    uvicorn.run("fundscope.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
