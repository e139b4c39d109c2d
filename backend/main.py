"""Family Chart - Generational family tree backend.

FastAPI server that loads a family dataset, lays it out as a generational
chart and resolves relationships for the person detail view.
"""

import logging
import os
from contextlib import asynccontextmanager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("familychart")

from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

from family_loader import FamilyDataLoader, LoaderStatus, GEDCOM_SUFFIXES, parse_family_content
from family_models import ChartLayout, FamilyData, FamilyDataError, LayoutConfig, PersonDetail
from gedcom_import import parse_gedcom_content
from layout_engine import compute_layout
from relationships import get_person_detail
from selection import PersonSelection

# Load environment variables
load_dotenv()

DEFAULT_DATA_SOURCE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "sample-family.json",
)


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Global state
layout_config = LayoutConfig.from_env()
family_loader = FamilyDataLoader(os.getenv("FAMILY_DATA_SOURCE", DEFAULT_DATA_SOURCE))
selection = PersonSelection(
    lambda: family_loader.people,
    symmetric_spouse=env_flag("SYMMETRIC_SPOUSE_LOOKUP"),
)


@selection.on_person_selected
def log_selection(person_id: str | None) -> None:
    if person_id is None:
        logger.info("Selection cleared")
    else:
        logger.info(f"Person selected: {person_id}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - load the family data snapshot."""
    logger.info(f"Loading family data from {family_loader.source}...")
    await family_loader.load()
    if family_loader.status == LoaderStatus.READY:
        logger.info("✓ Family data loaded")
    yield


# Create FastAPI app
app = FastAPI(
    title="Family Chart",
    description="Generational family tree layout and relationship lookup",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class FamilyStatusResponse(BaseModel):
    """Loader state."""
    model_config = ConfigDict(populate_by_name=True)

    status: LoaderStatus
    error: str | None = None
    person_count: int = Field(default=0, alias="personCount")


class FamilyUploadResponse(BaseModel):
    """Response after uploading a family data file."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    person_count: int = Field(alias="personCount")


class SelectionRequest(BaseModel):
    """Person selected in the chart."""
    model_config = ConfigDict(populate_by_name=True)

    person_id: str = Field(alias="personId")


class SelectionResponse(BaseModel):
    """Current selection; detail is None when nothing is selected."""
    model_config = ConfigDict(populate_by_name=True)

    person_id: str | None = Field(default=None, alias="personId")
    detail: PersonDetail | None = None


def status_response() -> FamilyStatusResponse:
    return FamilyStatusResponse(
        status=family_loader.status,
        error=family_loader.error,
        person_count=len(family_loader.people),
    )


def require_family_data() -> FamilyData:
    """Current snapshot, or an HTTP error while loading / after a failed load."""
    if family_loader.status == LoaderStatus.PENDING:
        raise HTTPException(status_code=503, detail="Family data is still loading")
    if family_loader.status == LoaderStatus.FAILED or family_loader.family_data is None:
        raise HTTPException(status_code=502, detail=f"Error loading family data: {family_loader.error}")
    return family_loader.family_data


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "familyData": family_loader.status.value,
    }


@app.get("/family/status", response_model=FamilyStatusResponse)
async def get_family_status():
    """Loader status: pending, ready or failed (with message)."""
    return status_response()


@app.get("/family", response_model=FamilyData)
async def get_family():
    """Get the current family data snapshot."""
    return require_family_data()


@app.post("/family/reload", response_model=FamilyStatusResponse)
async def reload_family():
    """Reload family data from the configured source."""
    logger.info(f"Reloading family data from {family_loader.source}")
    await family_loader.load()
    return status_response()


@app.post("/upload-family", response_model=FamilyUploadResponse)
async def upload_family(file: UploadFile = File(...)):
    """Upload a family data file (JSON or GEDCOM) and make it the current snapshot."""
    logger.info(f"Received family data upload: {file.filename}")

    filename = (file.filename or "").lower()
    is_gedcom = filename.endswith(GEDCOM_SUFFIXES)
    if not is_gedcom and not filename.endswith(".json"):
        logger.warning(f"Invalid file type: {file.filename}")
        raise HTTPException(status_code=400, detail="File must be JSON (.json) or GEDCOM (.ged or .gedcom)")

    content = await file.read()
    logger.debug(f"Read {len(content)} bytes from file")
    try:
        content_str = content.decode('utf-8')
    except UnicodeDecodeError:
        logger.info("UTF-8 decode failed, trying latin-1 encoding")
        content_str = content.decode('latin-1')

    try:
        family_data = parse_gedcom_content(content_str) if is_gedcom else parse_family_content(content_str)
    except FamilyDataError as e:
        logger.error(f"Failed to parse family data: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Failed to parse family data: {str(e)}")

    family_loader.set_family_data(family_data)
    return FamilyUploadResponse(
        message=f"Successfully loaded family data: {file.filename}",
        person_count=len(family_data.people),
    )


@app.get("/layout", response_model=ChartLayout)
async def get_layout():
    """Get positioned nodes and parent-child edges for the whole chart."""
    family_data = require_family_data()
    return compute_layout(family_data.people, layout_config)


@app.get("/people/{person_id}", response_model=PersonDetail)
async def get_person(person_id: str, symmetric_spouse: bool | None = Query(default=None)):
    """Get a person with parents, spouse and children."""
    family_data = require_family_data()

    if symmetric_spouse is None:
        symmetric_spouse = selection.symmetric_spouse
    detail = get_person_detail(person_id, family_data.people, symmetric_spouse=symmetric_spouse)

    if not detail:
        logger.warning(f"Person {person_id} not found")
        raise HTTPException(status_code=404, detail=f"Person with ID {person_id} not found")
    return detail


@app.post("/selection", response_model=SelectionResponse)
async def select_person(request: SelectionRequest):
    """Notify that a person was selected in the chart."""
    require_family_data()
    try:
        detail = selection.select(request.person_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Person with ID {request.person_id} not found")
    return SelectionResponse(person_id=request.person_id, detail=detail)


@app.get("/selection", response_model=SelectionResponse)
async def get_selection():
    """Get the selected person, if any."""
    detail = selection.current()
    return SelectionResponse(person_id=selection.selected_person_id, detail=detail)


@app.delete("/selection", response_model=SelectionResponse)
async def clear_selection():
    """Notify that the selection was cleared."""
    selection.clear()
    return SelectionResponse()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
