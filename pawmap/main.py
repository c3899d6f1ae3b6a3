"""Cloud Function Entry Point.

This module provides the entry point for Google Cloud Functions.
It's a thin wrapper that loads configuration, runs the map pipeline once
for the requested position, and returns the render model as JSON.
"""

import asyncio
import json
import logging
import os
from typing import Any, Mapping

import functions_framework
from flask import Request

from pawmap.core.config import Config
from pawmap.core.errors import LocationError, RepositoryError
from pawmap.core.filters import FilterCriteria
from pawmap.core.geo import Coordinate
from pawmap.orchestrator import MapViewModel, PipelineState
from pawmap.shell.backend_client import BackendClient
from pawmap.shell.config_loader import load_config, load_config_from_env
from pawmap.shell.entity_repository import EntityRepository
from pawmap.shell.location_provider import LocationProvider, StaticPositionSource


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


TRUE_VALUES = {"1", "true", "yes", "on"}


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("PAWMAP_BACKEND_URL"):
        return load_config_from_env()
    else:
        return load_config()


def parse_center(args: Mapping[str, str], config: Config) -> Coordinate | None:
    """Read the query center from lat/lng parameters, else the config default.

    Raises:
        ValueError: If lat/lng are present but not numbers
    """
    if "lat" in args and "lng" in args:
        return Coordinate(latitude=float(args["lat"]), longitude=float(args["lng"]))
    return config.default_center


def parse_criteria(args: Mapping[str, str], config: Config) -> FilterCriteria:
    """Build filter criteria from query parameters.

    Raises:
        ValueError: If a parameter is malformed or the criteria are invalid
    """
    defaults = FilterCriteria(radius_km=config.default_radius_km)

    return FilterCriteria(
        query=args.get("q", defaults.query),
        category=args.get("category", defaults.category),
        min_age=float(args.get("min_age", defaults.min_age)),
        max_age=float(args.get("max_age", defaults.max_age)),
        size=args.get("size", defaults.size),
        severity=args.get("severity", defaults.severity),
        radius_km=float(args.get("radius_km", defaults.radius_km)),
    )


def build_view_model(
    config: Config,
    center: Coordinate,
    criteria: FilterCriteria,
) -> MapViewModel:
    """Wire a view model for a one-shot request at a fixed position."""
    backend = BackendClient(
        config.backend.url,
        api_key=config.backend.api_key,
        timeout=config.backend.timeout_seconds,
    )
    return MapViewModel(
        config,
        location_provider=LocationProvider(
            StaticPositionSource(center),
            region_delta=config.region_delta,
        ),
        repository=EntityRepository(backend, config.backend),
        criteria=criteria,
    )


async def render_nearby(view_model: MapViewModel) -> None:
    """Run the pipeline once and tear the view model down."""
    try:
        await view_model.start()
    finally:
        await view_model.close()


def _status_code(view_model: MapViewModel) -> int:
    if view_model.state is PipelineState.READY:
        return 200
    if isinstance(view_model.error, LocationError):
        return 400
    if isinstance(view_model.error, RepositoryError):
        return 503
    return 500


@functions_framework.http
def nearby_map(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Query parameters: lat, lng, radius_km, q, category, size, severity,
    min_age, max_age, cluster.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Handling nearby map request")

    try:
        config = _get_config()
        args = request.args

        try:
            center = parse_center(args, config)
            criteria = parse_criteria(args, config)
        except ValueError as e:
            return {"status": "error", "message": str(e)}, 400

        if center is None:
            return {
                "status": "error",
                "message": "lat and lng are required",
            }, 400

        if "cluster" in args:
            config.clustering_enabled = args["cluster"].lower() in TRUE_VALUES

        view_model = build_view_model(config, center, criteria)
        asyncio.run(render_nearby(view_model))

        status_code = _status_code(view_model)
        response: dict[str, Any] = {
            "status": "success" if status_code == 200 else "error",
            "state": view_model.state.value,
            "render_model": view_model.render_model.to_dict(),
        }
        if view_model.notification is not None:
            response["message"] = view_model.notification.message

        logger.info(
            "Completed nearby map request: %s",
            json.dumps(view_model.render_model.counts()),
        )
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in nearby map")
        return {
            "status": "error",
            "message": str(e),
        }, 500
