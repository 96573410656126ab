from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from api.routes.patterns import router as patterns_router
from api.routes.retrieve import router as retrieve_router
from api.routes.session import router as session_router
from infrastructure.metrics import get_metrics_response

app = FastAPI(title="Pattern Assistant")

# CORS: allow the editor UI dev servers to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(retrieve_router)
app.include_router(patterns_router)
app.include_router(session_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Return a simple liveness check."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint (text exposition format)."""
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
