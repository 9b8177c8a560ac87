import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from server.api import router as chart_router

logger = logging.getLogger("uvicorn.error")
load_dotenv()
app = FastAPI(title="Worksheet Engine", description="Turn shelves into chart-ready data")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount the chart-data router
app.include_router(chart_router)


@app.get("/health")
async def health():
    settings = get_settings()
    return {
        "status": "ok",
        "max_rows": settings.max_rows,
        "sankey_max_nodes": settings.sankey_max_nodes,
    }
