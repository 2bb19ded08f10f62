"""FastAPI routes for the birdsong field monitor.

Lets a browser front end post frequency frames (or relative band
vectors) for classification and download the session log as CSV.
"""

import logging
import re
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import __version__
from .audio.classifier import SignatureClassifier
from .constants import ExportConfig
from .export import to_csv
from .session import CaptureLoop
from .sinks.network import SyllableNetwork

logger = logging.getLogger(__name__)

ByteValue = Annotated[int, Field(ge=0, le=255)]

# Download names end up inside a quoted Content-Disposition value
SAFE_FILENAME = re.compile(r"[\w.\- ]+\.csv", re.ASCII)


# =============================================================================
# Pydantic Schemas
# =============================================================================

class FrameRequest(BaseModel):
    frame: List[ByteValue] = Field(..., description="Byte frequency data, one value per bin")


class BandVectorRequest(BaseModel):
    low_rel: float = Field(..., ge=0, allow_inf_nan=False)
    mid_rel: float = Field(..., ge=0, allow_inf_nan=False)
    high_rel: float = Field(..., ge=0, allow_inf_nan=False)


class SpeciesResponse(BaseModel):
    key: str
    display_name: str
    scientific_name: str
    signature: List[float]
    emoji: str


class ClassificationResponse(BaseModel):
    species: SpeciesResponse
    distance: float
    confidence: int


class FrameResponse(BaseModel):
    total_energy: float
    level: float
    bands: Dict[str, float]
    normalized: Dict[str, float]
    dominant_band: str
    detection: Optional[ClassificationResponse] = None


class SessionResponse(BaseModel):
    started_at: int
    duration_seconds: int
    event_count: int
    transition_count: int
    species: Dict[str, int]


class HealthResponse(BaseModel):
    status: str
    version: str
    species_count: int
    energy_threshold: float


# =============================================================================
# Service Layer
# =============================================================================

# Global capture loop and network feed
_loop: Optional[CaptureLoop] = None
_network: Optional[SyllableNetwork] = None


def get_capture_loop() -> CaptureLoop:
    """Get the global capture loop, started on first use."""
    global _loop
    if _loop is None:
        set_capture_loop(CaptureLoop())
    _loop.start()
    return _loop


def set_capture_loop(loop: CaptureLoop) -> None:
    """Set the global capture loop and attach a fresh network feed to it."""
    global _loop, _network
    _loop = loop
    _network = SyllableNetwork()
    _loop.dispatcher.add_sink(_network)


def get_network() -> SyllableNetwork:
    get_capture_loop()
    return _network


def _classification_response(result) -> ClassificationResponse:
    return ClassificationResponse(
        species=SpeciesResponse(**result.signature.to_dict()),
        distance=result.distance,
        confidence=result.confidence,
    )


# =============================================================================
# Router
# =============================================================================

router = APIRouter(prefix="/api/v1", tags=["birdsong"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check():
    """Health check endpoint."""
    loop = get_capture_loop()

    return HealthResponse(
        status="healthy",
        version=__version__,
        species_count=len(loop.classifier.signatures),
        energy_threshold=loop.energy_threshold,
    )


@router.get("/species", response_model=List[SpeciesResponse], summary="List species signatures")
async def list_species():
    """Get the species signature table."""
    loop = get_capture_loop()
    return [SpeciesResponse(**s.to_dict()) for s in loop.classifier.signatures]


@router.post("/frames", response_model=FrameResponse, summary="Analyse one frequency frame")
async def analyse_frame(request: FrameRequest):
    """Run one capture tick over a posted frame."""
    loop = get_capture_loop()
    tick = loop.process(request.frame)
    features = tick.features

    return FrameResponse(
        total_energy=features.total_energy,
        level=tick.level,
        bands={
            "low": features.band_vector.low,
            "mid": features.band_vector.mid,
            "high": features.band_vector.high,
        },
        normalized={
            "low_rel": features.normalized.low_rel,
            "mid_rel": features.normalized.mid_rel,
            "high_rel": features.normalized.high_rel,
        },
        dominant_band=features.dominant_band,
        detection=_classification_response(tick.event.classification) if tick.detected else None,
    )


@router.post("/classify", response_model=ClassificationResponse, summary="Classify a band vector")
async def classify_vector(request: BandVectorRequest):
    """Classify a relative band vector without touching the session."""
    loop = get_capture_loop()
    result = loop.classifier.classify((request.low_rel, request.mid_rel, request.high_rel))
    return _classification_response(result)


@router.get("/session", response_model=SessionResponse, summary="Session summary")
async def session_summary():
    """Get counters for the current session."""
    return SessionResponse(**get_capture_loop().session.summary())


@router.post("/session/reset", response_model=SessionResponse, summary="Reset the session")
async def reset_session():
    """Clear counters, the detection log and the network."""
    loop = get_capture_loop()
    loop.session.reset()
    get_network().clear()
    logger.info("Session reset")
    return SessionResponse(**loop.session.summary())


@router.get("/session/network", summary="Syllable network")
async def session_network():
    """Get the syllable network nodes and edges."""
    return get_network().to_dict()


@router.get("/session/export.csv", summary="Download the session log as CSV")
async def export_session(filename: str = ExportConfig.filename):
    """Export detections in chronological order."""
    if not SAFE_FILENAME.fullmatch(filename):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid filename",
        )

    content = to_csv(get_capture_loop().session.events)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    loop: Optional[CaptureLoop] = None,
    cors_origins: List[str] = None,
    debug: bool = False,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        loop: Optional CaptureLoop instance (configured table/threshold)
        cors_origins: List of allowed CORS origins
        debug: Enable debug mode

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Birdsong Field Monitor API",
        description="Band-energy species estimation for field recordings",
        version=__version__,
        debug=debug,
    )

    if cors_origins is None:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    set_capture_loop(loop or CaptureLoop(classifier=SignatureClassifier()))

    app.include_router(router)

    @app.get("/", tags=["root"])
    async def root():
        return {
            "message": "Birdsong Field Monitor API",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app
