from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal, get_db, init_db
from .errors import InvalidAdvisorInputError, ProfileValidationError, RegistryUnavailableError
from .firms import display_name, firm_category, normalize_firm_name
from .models.registry import FirmDeal, FirmParameter
from .sample_data import build_sample_registry
from .schemas import CalculationRequest, CalculationResponse, FirmNameResponse
from .services.calculator import CompensationCalculator
from .services.formatting import format_results
from .services.normalizer import normalize_advisor_profile
from .services.registry import FirmRegistry, SqlFirmRegistry, seed_registry

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    if settings.SEED_SAMPLE_REGISTRY:
        with SessionLocal() as db:
            seed_registry(SqlFirmRegistry(db), build_sample_registry())
    yield


app = FastAPI(title="FA Axis Compensation Calculator", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

calculator = CompensationCalculator()
router = APIRouter(prefix=settings.API_V1_PREFIX)


def get_registry(db: Session = Depends(get_db)) -> FirmRegistry:
    return SqlFirmRegistry(db)


@app.exception_handler(ProfileValidationError)
async def profile_validation_handler(_request: Request, exc: ProfileValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"message": str(exc), "errors": exc.errors})


@app.exception_handler(InvalidAdvisorInputError)
async def invalid_input_handler(_request: Request, exc: InvalidAdvisorInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"message": str(exc), "errors": {exc.field: str(exc)}})


@app.exception_handler(RegistryUnavailableError)
async def registry_unavailable_handler(_request: Request, exc: RegistryUnavailableError) -> JSONResponse:
    logger.error(f"Calculation aborted, registry unavailable: {exc}")
    return JSONResponse(status_code=503, content={"message": str(exc)})


@router.post("/calculate", response_model=CalculationResponse)
def calculate(payload: CalculationRequest, registry: FirmRegistry = Depends(get_registry)) -> CalculationResponse:
    advisor = normalize_advisor_profile(payload.advisor)
    snapshot = registry.snapshot()
    result = calculator.run(
        advisor,
        snapshot,
        selected_firms=payload.selected_firms,
        previous_total_deal=payload.previous_total_deal,
    )
    return CalculationResponse(result=result, formatted=format_results(result))


@router.get("/firm-deals", response_model=List[FirmDeal])
def list_firm_deals(registry: FirmRegistry = Depends(get_registry)) -> List[FirmDeal]:
    return registry.list_deals()


@router.get("/firm-deals/firm/{firm_name}", response_model=FirmDeal)
def get_firm_deal(firm_name: str, registry: FirmRegistry = Depends(get_registry)) -> FirmDeal:
    deal = registry.get_deal(firm_name)
    if deal is None:
        raise HTTPException(status_code=404, detail="Firm deal not found")
    return deal


@router.get("/firm-parameters", response_model=List[FirmParameter])
def list_firm_parameters(registry: FirmRegistry = Depends(get_registry)) -> List[FirmParameter]:
    return registry.list_parameters()


@router.get("/firm-parameters/firm/{firm_name}", response_model=List[FirmParameter])
def get_firm_parameters(firm_name: str, registry: FirmRegistry = Depends(get_registry)) -> List[FirmParameter]:
    return registry.get_parameters(firm_name)


@router.get("/firms/normalize", response_model=FirmNameResponse)
def normalize_firm(name: str = Query(..., min_length=1)) -> FirmNameResponse:
    key = normalize_firm_name(name)
    return FirmNameResponse(name=name, key=key, display_name=display_name(key), category=firm_category(key))


app.include_router(router)


@app.get("/health")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}
