"""Default configuration parameters and seed catalogs for the process tracker."""

from dataclasses import dataclass

from ..models.records import Plot, Process


@dataclass(frozen=True)
class TrackerParams:
    """Periodic re-evaluation parameters."""
    tick_interval_seconds: float = 1.0               # Time between evaluation ticks
    auto_start_ticking: bool = False                 # Start the tick thread on init()


@dataclass(frozen=True)
class PersistenceParams:
    """Key-value persistence parameters."""
    backend: str = "sqlite"                          # sqlite | memory
    db_path: str = "procman.db"
    timeout_seconds: float = 30.0                    # SQLite busy timeout


@dataclass(frozen=True)
class DisplayParams:
    """Formatting parameters for the presentation layer."""
    timezone: str = "UTC"
    timestamp_format: str = "%d.%m.%Y %H:%M"         # DD.MM.YYYY HH:mm


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters passed to configure_logging."""
    level: str = "INFO"
    format_json: bool = False
    include_caller: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    tracker: TrackerParams
    persistence: PersistenceParams
    display: DisplayParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        tracker=TrackerParams(),
        persistence=PersistenceParams(),
        display=DisplayParams(),
        logging=LoggingParams(),
    )


# Built-in catalog written on first run when no stored collection exists
SEED_PROCESSES: tuple[Process, ...] = (
    Process(id=1, name="Chicken", duration_minutes=60),
    Process(id=2, name="Honey", duration_minutes=45),
    Process(id=3, name="Mine", duration_minutes=90),
    Process(id=4, name="Cow", duration_minutes=90),
    Process(id=5, name="Sauna VIP", duration_minutes=60 * 8),
)

SEED_PLOTS: tuple[Plot, ...] = (
    Plot(id=4768, name="4768", description="Farm (60x), Silk (4x), Chicken"),
    Plot(id=4156, name="4156", description="Farm (60x)"),
    Plot(id=4172, name="4172", description="4x Honey"),
    Plot(id=4171, name="4171", description="Chicken"),
    Plot(id=1309, name="1309", description="4x Salt Mine"),
    Plot(id=0, name="Terraville", description="x"),
    Plot(id=-1, name="Sauna", description="Sauna description"),
)
