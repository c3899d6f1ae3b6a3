"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from pawmap.core.clustering import DEFAULT_CLUSTER_RADIUS_DEGREES
from pawmap.core.filters import DEFAULT_RADIUS_KM
from pawmap.core.geo import DEFAULT_REGION_DELTA, Coordinate


@dataclass
class BackendConfig:
    """Where the hosted backend lives and what it calls things.

    Attributes:
        url: Backend base URL (e.g. https://xyz.supabase.co)
        api_key: Public (anon) API key
        nearby_function: Proximity remote procedure name
        animals_table: Table holding dogs
        emergencies_table: Table holding emergency reports
        fallback_row_limit: Row cap for the fallback table read (None = all)
        timeout_seconds: Per-request timeout
    """
    url: str = ""
    api_key: str = ""
    nearby_function: str = "find_nearby_dogs"
    animals_table: str = "dogs"
    emergencies_table: str = "emergency_requests"
    fallback_row_limit: int | None = None
    timeout_seconds: int = 30


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        backend: Hosted backend settings
        default_radius_km: Initial search radius
        cluster_radius_degrees: Clustering threshold in lat/lon degrees
        clustering_enabled: Whether clustering starts switched on
        region_delta: Viewport span used for a fresh position fix
        tracking_interval_seconds: Re-acquire interval while tracking
        filter_debounce_seconds: Quiet period before a filter change applies
        default_center: Position to use when no device position is available
    """
    backend: BackendConfig = field(default_factory=BackendConfig)
    default_radius_km: float = DEFAULT_RADIUS_KM
    cluster_radius_degrees: float = DEFAULT_CLUSTER_RADIUS_DEGREES
    clustering_enabled: bool = True
    region_delta: float = DEFAULT_REGION_DELTA
    tracking_interval_seconds: float = 1.0
    filter_debounce_seconds: float = 0.3
    default_center: Coordinate | None = None


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        return [e for e in self.errors if e.severity == "error"]


def _positive(value: float, field_name: str) -> list[ValidationError]:
    if value > 0:
        return []
    return [ValidationError(
        field=field_name,
        message=f"Must be positive, got {value}",
    )]


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    backend = config.backend
    if not backend.url or backend.url.startswith("${"):
        errors.append(ValidationError(
            field="backend.url",
            message="Backend URL not set (or still contains placeholder)",
        ))
    elif not backend.url.startswith(("http://", "https://")):
        errors.append(ValidationError(
            field="backend.url",
            message=f"Backend URL must be http(s), got {backend.url!r}",
        ))

    if not backend.api_key or backend.api_key.startswith("${"):
        errors.append(ValidationError(
            field="backend.api_key",
            message="API key not resolved; only public rows will be readable",
            severity="warning",
        ))

    if backend.fallback_row_limit is not None:
        if backend.fallback_row_limit > 0:
            errors.append(ValidationError(
                field="backend.fallback_row_limit",
                message="Fallback reads are capped; nearby rows may be missed",
                severity="warning",
            ))
        else:
            errors.extend(_positive(backend.fallback_row_limit, "backend.fallback_row_limit"))

    errors.extend(_positive(backend.timeout_seconds, "backend.timeout_seconds"))
    errors.extend(_positive(config.default_radius_km, "default_radius_km"))
    errors.extend(_positive(config.cluster_radius_degrees, "cluster_radius_degrees"))
    errors.extend(_positive(config.region_delta, "region_delta"))
    errors.extend(_positive(config.tracking_interval_seconds, "tracking_interval_seconds"))

    if config.filter_debounce_seconds < 0:
        errors.append(ValidationError(
            field="filter_debounce_seconds",
            message=f"Must not be negative, got {config.filter_debounce_seconds}",
        ))

    if config.default_center is not None and not config.default_center.is_valid:
        errors.append(ValidationError(
            field="default_center",
            message=(
                f"({config.default_center.latitude}, {config.default_center.longitude}) "
                "is not a usable location"
            ),
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
