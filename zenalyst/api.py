from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from zenalyst import core, responses
from zenalyst.config import get_settings
from zenalyst.services import analysis, data_layer, reporting
from zenalyst.services.data_layer import RecordNotFound, ReportingStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("zenalyst.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = data_layer.create_client(settings)
    app.state.store = ReportingStore(client[settings.database_name], settings)
    logger.info("Using database %s at %s", settings.database_name, settings.mongodb_uri)
    try:
        yield
    finally:
        client.close()
        logger.info("Database connection closed")


app = FastAPI(
    title="Zenalyst Analytics API",
    version=settings.api_version,
    description="REST API for the Zenalyst analytics dashboard",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed
    )
    return response


@app.exception_handler(RecordNotFound)
async def not_found_handler(request: Request, exc: RecordNotFound):
    return responses.error(404, f"{exc.kind} not found", exc.message)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return responses.error(500, "Database request failed", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = str(exc.detail)
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route {request.url.path} not found"
    return responses.error(exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(err.get("msg", "") for err in exc.errors())
    # the analyze body has a single field, so any body error is a bad prompt
    message = "Invalid prompt provided" if request.url.path.endswith("/analytics/analyze") else "Invalid request"
    return responses.error(400, message, details)


def get_store(request: Request) -> ReportingStore:
    return request.app.state.store


router = APIRouter(prefix=settings.api_prefix)


@router.get("/health")
def healthcheck(store: ReportingStore = Depends(get_store)):
    return {
        "success": True,
        "message": "API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.api_version,
        "database": store.ping(),
    }


# Revenue


@router.get("/revenue/summary")
def revenue_summary(store: ReportingStore = Depends(get_store)):
    data = reporting.revenue_summary(store.revenue_summary())
    return responses.success("Revenue summary retrieved successfully", data)


@router.get("/revenue/quarterly")
def quarterly_revenue(store: ReportingStore = Depends(get_store)):
    data = reporting.quarterly_revenue(store.quarterly_totals())
    return responses.success("Quarterly revenue data retrieved successfully", data)


@router.get("/revenue/growth-customers")
def growth_customers(
    limit: Optional[str] = None, store: ReportingStore = Depends(get_store)
):
    limit_value = core.coerce_positive_int(limit, reporting.GROWTH_CUSTOMERS_LIMIT)
    data = reporting.top_growth_customers(store.quarterly_revenue(), limit_value)
    return responses.success("Top growth customers retrieved successfully", data)


@router.get("/revenue/customer-quarterly")
def customer_quarterly(
    min_q4_revenue: Optional[str] = Query(None, alias="minQ4Revenue"),
    positive_growth_only: Optional[str] = Query(None, alias="positiveGrowthOnly"),
    limit: Optional[str] = None,
    page: Optional[str] = None,
    store: ReportingStore = Depends(get_store),
):
    spec = core.build_filter_spec(min_q4_revenue, positive_growth_only, limit, page)
    rows, result = reporting.customer_quarterly_page(store.quarterly_revenue(), spec)
    return responses.paginated(
        "Customer quarterly data retrieved successfully", rows, result.pagination
    )


@router.get("/revenue/bridge")
def revenue_bridge(
    limit: Optional[str] = None, store: ReportingStore = Depends(get_store)
):
    # limit is accepted for older dashboard builds; the bridge is always four rows
    data = reporting.revenue_bridge(store.bridge_totals())
    return responses.success("Revenue bridge data retrieved successfully", data)


# Countries


@router.get("/countries")
def countries(store: ReportingStore = Depends(get_store)):
    data = reporting.all_countries(store.countries())
    return responses.success("All countries retrieved successfully", data)


@router.get("/countries/top-revenue")
def top_countries(
    limit: Optional[str] = None, store: ReportingStore = Depends(get_store)
):
    limit_value = core.coerce_positive_int(limit, reporting.TOP_COUNTRIES_LIMIT)
    data = reporting.top_countries(store.countries(), limit_value)
    return responses.success("Top countries by revenue retrieved successfully", data)


@router.get("/countries/revenue-share")
def country_revenue_share(
    limit: Optional[str] = None, store: ReportingStore = Depends(get_store)
):
    limit_value = core.coerce_positive_int(limit, reporting.COUNTRY_SHARE_LIMIT)
    data = reporting.country_revenue_share(store.countries(), limit_value)
    return responses.success("Revenue share by country retrieved successfully", data)


@router.get("/countries/{country_name}")
def country(country_name: str, store: ReportingStore = Depends(get_store)):
    data = reporting.country_row(store.country(country_name))
    return responses.success("Country retrieved successfully", data)


# Customers


@router.get("/customers/concentration")
def customer_concentration(
    limit: Optional[str] = None, store: ReportingStore = Depends(get_store)
):
    limit_value = core.coerce_positive_int(limit, reporting.CONCENTRATION_LIMIT)
    data = reporting.customer_concentration(store.customer_concentration(), limit_value)
    return responses.success("Customer concentration data retrieved successfully", data)


@router.get("/customers/analysis")
def customer_analysis(
    min_q4_revenue: Optional[str] = Query(None, alias="minQ4Revenue"),
    positive_growth_only: Optional[str] = Query(None, alias="positiveGrowthOnly"),
    limit: Optional[str] = None,
    page: Optional[str] = None,
    store: ReportingStore = Depends(get_store),
):
    spec = core.build_filter_spec(min_q4_revenue, positive_growth_only, limit, page)
    rows, result = reporting.customer_analysis_page(store.quarterly_revenue(), spec)
    return responses.paginated(
        "Customer analysis data retrieved successfully",
        rows,
        result.pagination,
        filters={
            "minQ4Revenue": spec.min_q4_revenue,
            "positiveGrowthOnly": spec.positive_growth_only,
        },
    )


@router.get("/customers/statistics")
def customer_statistics(store: ReportingStore = Depends(get_store)):
    data = reporting.customer_statistics(store.quarterly_revenue())
    return responses.success("Customer statistics retrieved successfully", data)


@router.get("/customers/{customer_name}")
def customer(customer_name: str, store: ReportingStore = Depends(get_store)):
    data = reporting.quarterly_row(store.customer(customer_name), with_status=True)
    return responses.success("Customer retrieved successfully", data)


# Regions


@router.get("/regions")
def regions(store: ReportingStore = Depends(get_store)):
    data = reporting.all_regions(store.regions())
    return responses.success("All regions retrieved successfully", data)


@router.get("/regions/revenue")
def regions_revenue(store: ReportingStore = Depends(get_store)):
    data = reporting.regions_summary(store.regions())
    return responses.success("Regions revenue summary retrieved successfully", data)


@router.get("/regions/{region_name}")
def region(region_name: str, store: ReportingStore = Depends(get_store)):
    data = reporting.region_row(store.region(region_name))
    return responses.success("Region retrieved successfully", data)


# Analytics


class AnalyzeRequest(BaseModel):
    prompt: Optional[str] = None


@router.get("/analytics/prompts")
def prompts():
    return responses.success(
        "Predefined prompts retrieved successfully", analysis.PREDEFINED_PROMPTS
    )


@router.post("/analytics/analyze")
def analyze(payload: AnalyzeRequest, store: ReportingStore = Depends(get_store)):
    if not payload.prompt or not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Invalid prompt provided")
    data = analysis.analyze(payload.prompt, store)
    return responses.success("Analysis completed successfully", data)


@router.get("/analytics/dashboard")
def dashboard(store: ReportingStore = Depends(get_store)):
    data = reporting.build_dashboard(store, max_workers=settings.dashboard_workers)
    return responses.success("Dashboard summary retrieved successfully", data)


app.include_router(router)
