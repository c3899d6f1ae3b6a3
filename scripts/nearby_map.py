#!/usr/bin/env python3
"""Print what the map would show around a point.

Runs the full pipeline (locate, fetch, filter, cluster) once against the
configured backend and logs the render model.

Usage:
    # Around a fixed point
    python scripts/nearby_map.py --lat 40.0 --lng -74.0 --radius 10

    # Around the approximate position of this machine
    python scripts/nearby_map.py --ip-location

    # Strays matching a search, without clustering
    python scripts/nearby_map.py --lat 40.0 --lng -74.0 --category stray --query lab --no-cluster

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    GCP_PROJECT: GCP project ID for Secret Manager access
"""

import argparse
import asyncio
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pawmap.core.filters import CATEGORIES, FilterCriteria
from pawmap.core.geo import Coordinate
from pawmap.orchestrator import MapViewModel, PipelineState
from pawmap.shell.backend_client import BackendClient
from pawmap.shell.config_loader import load_config
from pawmap.shell.entity_repository import EntityRepository
from pawmap.shell.location_provider import (
    GeolocationAPISource,
    LocationProvider,
    StaticPositionSource,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the map render model around a point")
    parser.add_argument("--lat", type=float, help="Center latitude")
    parser.add_argument("--lng", type=float, help="Center longitude")
    parser.add_argument("--ip-location", action="store_true", help="Locate via IP geolocation")
    parser.add_argument("--radius", type=float, help="Search radius in km")
    parser.add_argument("--query", default="", help="Free-text search")
    parser.add_argument("--category", default="all", choices=CATEGORIES)
    parser.add_argument("--no-cluster", action="store_true", help="Disable clustering")
    return parser.parse_args()


async def run(view_model: MapViewModel) -> None:
    try:
        await view_model.start()
    finally:
        await view_model.close()


def main() -> int:
    args = parse_args()
    config = load_config()

    if args.ip_location:
        source = GeolocationAPISource()
    elif args.lat is not None and args.lng is not None:
        source = StaticPositionSource(Coordinate(args.lat, args.lng))
    elif config.default_center is not None:
        source = StaticPositionSource(config.default_center)
    else:
        logger.error("Pass --lat/--lng, --ip-location, or set default_center in config")
        return 1

    config.clustering_enabled = not args.no_cluster
    criteria = FilterCriteria(
        query=args.query,
        category=args.category,
        radius_km=args.radius or config.default_radius_km,
    )

    backend = BackendClient(
        config.backend.url,
        api_key=config.backend.api_key,
        timeout=config.backend.timeout_seconds,
    )
    view_model = MapViewModel(
        config,
        location_provider=LocationProvider(source, region_delta=config.region_delta),
        repository=EntityRepository(backend, config.backend),
        criteria=criteria,
    )

    asyncio.run(run(view_model))

    if view_model.state is not PipelineState.READY:
        message = view_model.notification.message if view_model.notification else "unknown error"
        logger.error("Pipeline ended in %s: %s", view_model.state.value, message)
        return 1

    model = view_model.render_model
    logger.info("=" * 60)
    for animal in model.animals:
        logger.info(
            "  dog  %-20s %-8s %6.2f km",
            animal.name,
            animal.category,
            animal.distance_km or 0.0,
        )
    for report in model.emergencies:
        logger.info(
            "  SOS  %-20s %-8s %6.2f km",
            report.category,
            report.severity,
            report.distance_km or 0.0,
        )
    for cluster in model.clusters:
        logger.info(
            "  cluster of %d at (%.4f, %.4f)",
            cluster.count,
            cluster.center.latitude,
            cluster.center.longitude,
        )
    logger.info("=" * 60)
    logger.info("Counts: %s", model.counts())

    return 0


if __name__ == "__main__":
    sys.exit(main())
