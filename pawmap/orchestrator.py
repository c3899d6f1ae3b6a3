"""Orchestrator - Wires Functional Core and Imperative Shell.

MapViewModel owns the map screen state and runs the pipeline
position -> entities -> filtered entities -> clusters -> render model.
It is the only writer of that state; the view layer reads it and calls
the actions.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from pawmap.core.config import Config
from pawmap.core.entities import Entity
from pawmap.core.errors import (
    LocationError,
    PermissionDenied,
    RepositoryError,
)
from pawmap.core.filters import FilterCriteria, requires_refetch
from pawmap.core.geo import UserRegion
from pawmap.core.render import RenderModel, build_render_model
from pawmap.shell.entity_repository import EntityRepository, NearbyEntities
from pawmap.shell.location_provider import LocationProvider
from pawmap.shell.maps_launcher import LaunchResult, MapsLauncher


logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    LOCATING = "locating"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class ViewMode(str, Enum):
    MAP = "map"
    LIST = "list"
    GRID = "grid"


@dataclass(frozen=True)
class Notification:
    """A message for the user.

    Attributes:
        message: Text to show
        blocking: True if the map is unusable until the cause is resolved
        retryable: Whether a retry action should be offered
    """
    message: str
    blocking: bool = False
    retryable: bool = True


PERMISSION_MESSAGE = (
    "Location permission is required to use the map. "
    "Enable location access and try again."
)
POSITION_MESSAGE = "Could not determine your location. Please try again."
REFRESH_MESSAGE = "Could not refresh map data"
UNEXPECTED_MESSAGE = "Could not initialize map. Please try again."
MAPS_MESSAGE = "Could not open maps application"


Listener = Callable[["MapViewModel"], None]


class MapViewModel:
    """Coordinates the map screen pipeline.

    This class wires together:
    - LocationProvider (user position)
    - EntityRepository (animals and emergencies around the position)
    - Core functions (filtering, clustering)
    - MapsLauncher (navigation hand-off)

    Pipeline runs are serialized: a refresh requested while one is in
    flight runs once the current one settles, with the latest state.
    Actions that schedule work must be called from a running event loop.
    """

    def __init__(
        self,
        config: Config,
        location_provider: LocationProvider,
        repository: EntityRepository,
        maps_launcher: MapsLauncher | None = None,
        criteria: FilterCriteria | None = None,
    ) -> None:
        """Initialize the view model.

        Args:
            config: Application configuration
            location_provider: Source of user regions
            repository: Source of map entities
            maps_launcher: Navigation hand-off (created if not provided)
            criteria: Initial filter criteria (config radius if not provided)
        """
        self.config = config
        self.location_provider = location_provider
        self.repository = repository
        self.maps_launcher = maps_launcher or MapsLauncher()

        self.state = PipelineState.IDLE
        self.criteria = criteria or FilterCriteria(radius_km=config.default_radius_km)
        self.clustering_enabled = config.clustering_enabled
        self.view_mode = ViewMode.MAP
        self.tracking = False

        self.user_region: UserRegion | None = None
        self.region: UserRegion | None = None
        self.render_model = RenderModel()
        self.notification: Notification | None = None
        self.error: Exception | None = None

        self._nearby: NearbyEntities | None = None
        self._fetched_criteria: FilterCriteria | None = None
        self._listeners: list[Listener] = []
        self._closed = False

        self._pipeline_task: asyncio.Task | None = None
        self._debounce_task: asyncio.Task | None = None
        self._tracking_task: asyncio.Task | None = None
        self._rerun_requested = False
        self._relocate_requested = False

    # ----- Observation -----

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked after every state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _transition(self, state: PipelineState) -> None:
        if state is not self.state:
            logger.info("Map pipeline %s -> %s", self.state.value, state.value)
            self.state = state
        self._notify()

    def _fail(self, error: Exception, notification: Notification) -> None:
        logger.warning("Map pipeline failed: %s", error)
        self.error = error
        self.notification = notification
        self._transition(PipelineState.ERROR)

    # ----- Pipeline -----

    def _publish(self) -> None:
        """Rebuild the render model from the last fetched entities."""
        if self._nearby is None:
            return

        self.render_model = build_render_model(
            self._nearby.animals,
            self._nearby.emergencies,
            self.criteria,
            clustering_enabled=self.clustering_enabled,
            cluster_radius_degrees=self.config.cluster_radius_degrees,
        )

        logger.info(
            "Published %d animals, %d emergencies, %d clusters",
            len(self.render_model.animals),
            len(self.render_model.emergencies),
            len(self.render_model.clusters),
        )
        self._notify()

    async def _locate(self) -> bool:
        self._transition(PipelineState.LOCATING)

        try:
            region = await self.location_provider.acquire()
        except PermissionDenied as e:
            self._fail(e, Notification(PERMISSION_MESSAGE, blocking=True))
            return False
        except LocationError as e:
            self._fail(e, Notification(POSITION_MESSAGE))
            return False

        if self._closed:
            return False

        self.user_region = region
        self.region = region
        if self.notification is not None and self.notification.blocking:
            self.notification = None
        return True

    async def _load(self) -> None:
        self._transition(PipelineState.LOADING)

        center = self.region.center
        criteria = self.criteria

        try:
            nearby = await asyncio.to_thread(
                self.repository.fetch_nearby,
                center,
                criteria.radius_km,
            )
        except RepositoryError as e:
            # Keep showing whatever was rendered before
            self._fail(e, Notification(REFRESH_MESSAGE))
            return

        if self._closed:
            return

        self._nearby = nearby
        self._fetched_criteria = criteria
        self.error = None
        if self.notification is not None and not self.notification.blocking:
            self.notification = None
        self._publish()
        self._transition(PipelineState.READY)

    async def _run(self, relocate: bool) -> None:
        if relocate or self.region is None:
            if not await self._locate():
                return
        await self._load()

    async def _drain(self) -> None:
        """Run the pipeline until no further run has been requested."""
        while not self._closed:
            self._rerun_requested = False
            relocate = self._relocate_requested
            self._relocate_requested = False

            try:
                await self._run(relocate)
            except Exception as e:
                logger.exception("Unexpected error in map pipeline")
                if self._closed:
                    return
                self._fail(e, Notification(UNEXPECTED_MESSAGE))

            if not self._rerun_requested:
                return

    def _request_run(self, relocate: bool) -> asyncio.Task:
        self._relocate_requested = self._relocate_requested or relocate

        if self._pipeline_task is not None and not self._pipeline_task.done():
            self._rerun_requested = True
            return self._pipeline_task

        self._pipeline_task = asyncio.create_task(self._drain())
        return self._pipeline_task

    async def _await_run(self, relocate: bool) -> None:
        if self._closed:
            return

        task = self._request_run(relocate)
        try:
            # Shield so a cancelled caller does not cancel the shared run
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                return
            raise

    # ----- Actions -----

    async def start(self) -> None:
        """Locate the user and load the map. Called on mount."""
        await self._await_run(relocate=True)

    async def retry(self) -> None:
        """Recover from an error by locating again."""
        self.notification = None
        await self._await_run(relocate=True)

    async def refresh(self) -> None:
        """Re-run the pipeline from the current region.

        From the error state (or before any fix) this locates first.
        """
        relocate = self.state is PipelineState.ERROR or self.region is None
        await self._await_run(relocate=relocate)

    def set_filter_criteria(self, **changes: Any) -> FilterCriteria:
        """Change some filter controls.

        The change applies after a quiet period. A radius change refetches;
        anything else re-filters the entities already fetched.

        Raises:
            ValueError: If the resulting criteria are invalid
            TypeError: If an unknown control is named
        """
        self.criteria = replace(self.criteria, **changes)

        if self._debounce_task is not None:
            self._debounce_task.cancel()
        self._debounce_task = asyncio.create_task(self._apply_after_quiet_period())

        return self.criteria

    async def _apply_after_quiet_period(self) -> None:
        await asyncio.sleep(self.config.filter_debounce_seconds)

        if self._closed or self.region is None:
            return

        fetched = self._fetched_criteria
        if fetched is None or requires_refetch(fetched, self.criteria):
            await self.refresh()
        else:
            self._publish()

    async def settle(self) -> None:
        """Wait until no filter change or pipeline run is pending."""
        while True:
            pending = [
                task for task in (self._debounce_task, self._pipeline_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.wait(pending)

    def toggle_clustering(self) -> bool:
        """Switch clustering on or off. Returns the new setting."""
        self.clustering_enabled = not self.clustering_enabled
        self._publish()
        return self.clustering_enabled

    def set_view_mode(self, mode: ViewMode) -> None:
        self.view_mode = ViewMode(mode)
        self._notify()

    def set_region(self, region: UserRegion) -> None:
        """Record a user pan or zoom. Does not refetch."""
        self.region = region
        self._notify()

    def recenter(self) -> UserRegion | None:
        """Move the viewport back to the user's last known position."""
        if self.user_region is not None:
            self.region = self.user_region
            self._notify()
        return self.region

    def set_tracking(self, enabled: bool) -> None:
        """Start or stop continuous position tracking.

        Tracking only moves the user region; it never refetches.
        """
        if enabled and (self._tracking_task is None or self._tracking_task.done()):
            self._tracking_task = asyncio.create_task(
                self.location_provider.track(
                    self._on_tracked_region,
                    self.config.tracking_interval_seconds,
                )
            )
            self._tracking_task.add_done_callback(self._on_tracking_done)
        elif not enabled and self._tracking_task is not None:
            self._tracking_task.cancel()
            self._tracking_task = None

        self.tracking = enabled
        self._notify()

    def _on_tracked_region(self, region: UserRegion) -> None:
        if self._closed:
            return

        following = self.region is None or self.region == self.user_region
        self.user_region = region
        if following:
            self.region = region
        self._notify()

    def _on_tracking_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or self._closed:
            return

        error = task.exception()
        if error is None:
            return

        logger.warning("Position tracking stopped: %s", error)
        self.tracking = False
        blocking = isinstance(error, PermissionDenied)
        self.notification = Notification(
            PERMISSION_MESSAGE if blocking else POSITION_MESSAGE,
            blocking=blocking,
        )
        self._notify()

    def navigate_to(self, entity: Entity) -> LaunchResult:
        """Hand directions to an entity over to the external maps app."""
        result = self.maps_launcher.navigate_to(entity.coordinate, entity.label)
        if not result.success:
            self.notification = Notification(MAPS_MESSAGE, retryable=False)
            self._notify()
        return result

    def dismiss_notification(self) -> None:
        """Dismiss a transient notification. Blocking ones stay."""
        if self.notification is not None and not self.notification.blocking:
            self.notification = None
            self._notify()

    async def close(self) -> None:
        """Tear down: abandon in-flight work and ignore its results."""
        self._closed = True
        self._listeners.clear()

        tasks = [
            task for task in (self._pipeline_task, self._debounce_task, self._tracking_task)
            if task is not None and not task.done()
        ]
        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Map view model closed")
