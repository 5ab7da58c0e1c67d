import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .analysis.insights import generate_insights
from .config import get_settings
from .events import InsightsRequest
from .ingest import INVALID_PAYLOAD, Rejected, ingest
from .logging_config import setup_logging
from .store import MetricStore, build_store

log = logging.getLogger(__name__)

INGEST_PATH = "/api/formfix"


def create_app(store: MetricStore = None, settings=None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    store = store if store is not None else build_store(settings)
    thresholds = settings.thresholds()

    app = FastAPI(title="FormFix API", version="0.1.0")
    app.state.store = store

    # the SDK posts from arbitrary origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        # unparseable ingest bodies get the same answer as malformed metrics
        if request.url.path == INGEST_PATH:
            log.warning("rejected metric: %s", exc.errors())
            return JSONResponse(status_code=400, content={"error": INVALID_PAYLOAD})
        return await request_validation_exception_handler(request, exc)

    @app.get("/health")
    def health():
        return {"ok": True, "service": "formfix-api", "store": store.name, "store_ok": store.healthy()}

    @app.post(INGEST_PATH)
    def ingest_metric(payload: Any = Body(None)):
        result = ingest(store, payload)
        if isinstance(result, Rejected):
            return JSONResponse(status_code=400, content={"error": INVALID_PAYLOAD})
        return {"status": "ok"}

    @app.get("/api/formfix/metrics")
    def list_metrics() -> List[Dict[str, Any]]:
        return [ev.model_dump() for ev in store.read_all()]

    @app.get("/api/formfix/config")
    def config():
        return thresholds.as_dict()

    @app.post("/api/formfix/insights")
    def insights(req: Optional[InsightsRequest] = Body(None)):
        metrics = req.metrics if req is not None and req.metrics is not None else store.read_all()
        try:
            report = generate_insights(metrics, thresholds)
            return JSONResponse(content={"success": True, "insights": report.model_dump(mode="json")})
        except Exception:
            log.exception("Insights generation error")
            return JSONResponse(status_code=500, content={"success": False, "error": "Insights generation failed"})

    return app


app = create_app()
