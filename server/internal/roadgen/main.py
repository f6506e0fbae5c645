"""
Road Network Generation Service
Main entry point for the Python road generation service.
"""

import logging
import os
import sys
from pathlib import Path

# Add server directory to path for imports
server_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(server_dir))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional
import uvicorn

from internal.roadgen import config
from internal.roadgen import density
from internal.roadgen import generation
from internal.roadgen import seeds

logger = logging.getLogger(__name__)

SERVICE_NAME = "roadgen-service"
SERVICE_VERSION = "0.1.0"

app = FastAPI(
    title="Road Network Generation Service",
    description="Service for generating density-driven road networks",
    version=SERVICE_VERSION,
)

# CORS middleware (allow the map viewer to call this service)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load configuration
cfg = config.load_config()


class HealthResponse(BaseModel):
    """Health check response"""

    status: str
    service: str
    version: str


class GenerateNetworkRequest(BaseModel):
    """Request to generate a road network"""

    seed: Optional[str] = Field(
        default=None, description="Generation seed (uses world seed if not provided)"
    )
    segment_limit: Optional[int] = Field(
        default=None, ge=1, description="Segment cap (capped by the service maximum)"
    )


class NetworkBounds(BaseModel):
    """Bounding box of the generated network"""

    min_x: float
    min_y: float
    max_x: float
    max_y: float


class NetworkSummary(BaseModel):
    """Summary of a generated network"""

    segment_count: int
    highway_count: int
    severed_count: int
    total_length: float
    highway_length: float
    bounds: Optional[NetworkBounds] = None


class DebugCounts(BaseModel):
    """Number of network edits made by the local constraints"""

    snaps: int
    intersections: int
    intersections_radius: int


class GenerateNetworkResponse(BaseModel):
    """Response from network generation"""

    success: bool
    seed: str
    segment_limit: int
    accepted_count: int
    rejected_count: int
    summary: NetworkSummary
    debug: DebugCounts
    message: Optional[str] = None


class PopulationResponse(BaseModel):
    """Population density sample"""

    seed: str
    x: float
    y: float
    population: float


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
    )


@app.post("/api/v1/roads/generate", response_model=GenerateNetworkResponse)
async def generate_network(request: GenerateNetworkRequest):
    """
    Generate a road network and return its summary.

    The segment limit defaults to the configured limit and never exceeds the
    service maximum.
    """
    seed = request.seed if request.seed is not None else cfg.world_seed

    try:
        generation_config = config.load_generation_config(cfg.generation_config_path)
        limit = min(
            request.segment_limit or generation_config.segment_count_limit,
            cfg.max_segment_limit,
        )
        result = generation.generate_network(
            seed, generation_config.with_overrides(segment_count_limit=limit)
        )
        summary = generation.summarize_network(result.segments)
    except Exception as e:
        logger.exception("road generation failed for seed %r", seed)
        raise HTTPException(
            status_code=500, detail=f"Failed to generate road network: {str(e)}"
        )

    return GenerateNetworkResponse(
        success=True,
        seed=seed,
        segment_limit=limit,
        accepted_count=result.accepted_count,
        rejected_count=result.rejected_count,
        summary=NetworkSummary(**summary),
        debug=DebugCounts(
            snaps=len(result.debug_data.snaps),
            intersections=len(result.debug_data.intersections),
            intersections_radius=len(result.debug_data.intersections_radius),
        ),
        message=f"{summary['segment_count']} segments generated",
    )


@app.get("/api/v1/roads/population", response_model=PopulationResponse)
async def get_population(x: float, y: float, seed: Optional[str] = None):
    """Sample the population density field used for a seed (useful for debugging)"""
    seed = seed if seed is not None else cfg.world_seed
    rng = seeds.seeded_random(seed)
    field = density.PopulationDensity(seeds.get_noise_offset(rng))

    return PopulationResponse(seed=seed, x=x, y=y, population=field.population_at(x, y))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("ROADGEN_SERVICE_PORT", "8082"))
    host = os.getenv("ROADGEN_SERVICE_HOST", "0.0.0.0")

    uvicorn.run(
        "main:app", host=host, port=port, reload=cfg.environment == "development"
    )
