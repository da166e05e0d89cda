"""
Jogging Tracker bootstrap.

Wires settings, logging, persistence and the tracking service together.
Stateful services are built here and passed down explicitly.
"""

import logging
import sys
from typing import Callable, Optional

from jogtracker.config import Settings, settings as default_settings
from jogtracker.shared.clock import Clock, now_ms
from jogtracker.features.location import LocationFeed, PermissionMonitor
from jogtracker.features.persistence import DeferredWorkQueue, SessionStore, create_gateway
from jogtracker.features.tracking.calculators import DistanceAccumulator, GeoFixFilter
from jogtracker.features.tracking.service import TrackingService

logger = logging.getLogger(__name__)


# === Logging Setup ===
def setup_logging(settings: Settings = default_settings) -> None:
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def build_accumulator(settings: Settings = default_settings) -> DistanceAccumulator:
    """Distance accumulator with thresholds from settings."""
    return DistanceAccumulator(
        fix_filter=GeoFixFilter(min_movement_m=settings.min_movement_meters),
        min_segment_m=settings.min_segment_meters,
        max_segment_m=settings.max_segment_meters,
    )


def build_store(settings: Settings = default_settings, clock: Clock = now_ms) -> SessionStore:
    return SessionStore(
        create_gateway(settings),
        clock=clock,
        quota_bytes=settings.storage_quota_bytes,
    )


def build_service(
    settings: Settings = default_settings,
    clock: Clock = now_ms,
    permission: Optional[PermissionMonitor] = None,
    feed: Optional[LocationFeed] = None,
    on_notice: Optional[Callable[[str], None]] = None,
    store: Optional[SessionStore] = None,
) -> TrackingService:
    """
    Build a TrackingService from settings.

    The work queue strategy is fixed here, once, for the process lifetime.
    """
    queue = DeferredWorkQueue(settings.work_queue_strategy)
    service = TrackingService(
        store or build_store(settings, clock),
        queue,
        clock=clock,
        accumulator=build_accumulator(settings),
        permission=permission,
        feed=feed,
        backup_interval_seconds=settings.backup_interval_seconds,
        on_notice=on_notice,
    )
    logger.info(
        f"Tracker ready (storage={settings.storage_backend}, queue={settings.work_queue_strategy})"
    )
    return service
