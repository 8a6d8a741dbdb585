"""Main entry point for the transit timetables simulation."""

import asyncio
import json
import logging
import sys
from pathlib import Path

from transit_timetables.adapters.broadcasters import TimetableBroadcaster, TimetableSubscriber
from transit_timetables.adapters.config import AppConfig, NetworkConfigurationLoader
from transit_timetables.adapters.runtime import FrameDriver
from transit_timetables.adapters.simulation import DelayLog, InMemoryTransitHost
from transit_timetables.application.services import TimetableReplica, TimetableSession
from transit_timetables.application.services.slot_generator import apply_recurring
from transit_timetables.application.services.timetable_codec import import_timetable
from transit_timetables.domain.models import (
    ConstraintType,
    LineConfiguration,
    Slot,
    TimetableError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def seed_timetables(session: TimetableSession, line_configs: list[LineConfiguration]) -> None:
    """Apply the timetables declared in the network configuration."""
    store = session.store
    for line_config in line_configs:
        line = line_config.line_id
        if line_config.first_slot is not None:
            store.add_condition(line, 1, Slot.from_sequence(line_config.first_slot))
            if line_config.separation_minutes:
                apply_recurring(store, line, 1, line_config.separation_minutes)
        for stop in line_config.auto_debounce_stops:
            store.set_condition_type(line, stop, ConstraintType.AUTO_DEBOUNCE)
        if line_config.force_departure:
            store.set_force_departure(line, True)
        if line_config.has_timetable:
            store.set_has_timetable(line, True)


def restore_state(session: TimetableSession, config: AppConfig) -> None:
    """Load the saved snapshot, then the exported timetable, when configured."""
    if config.snapshot_file and Path(config.snapshot_file).exists():
        with open(config.snapshot_file, encoding="utf-8") as f:
            session.load(json.load(f))
    if config.timetable_file:
        text = Path(config.timetable_file).read_text(encoding="utf-8")
        lines = import_timetable(session.store, text)
        logger.info(f"Imported timetables of line(s) {lines} from {config.timetable_file}")


def save_state(session: TimetableSession, config: AppConfig) -> None:
    if not config.snapshot_file:
        return
    with open(config.snapshot_file, "w", encoding="utf-8") as f:
        json.dump(session.save(), f, indent=2)
    logger.info(f"Saved timetable snapshot to {config.snapshot_file}")


async def main() -> None:
    """Main application entry point."""
    config = AppConfig()

    # Load line configurations
    try:
        line_configs = NetworkConfigurationLoader.load(config)
        logger.info(f"Loaded {len(line_configs)} line(s):")
        for line_config in line_configs:
            logger.info(
                f"  - Line {line_config.line_id} '{line_config.name}' with "
                f"{line_config.stop_count} stop(s) and {line_config.vehicle_count} vehicle(s)"
            )
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid network configuration: {e}")
        sys.exit(1)

    if not line_configs:
        logger.error("No lines configured.")
        logger.error("Please configure [[lines]] in your config.toml file.")
        logger.error("Or copy config.example.toml to config.toml and customize it.")
        sys.exit(1)

    host = InMemoryTransitHost(line_configs)
    broadcaster = TimetableBroadcaster() if config.replication_enabled else None
    session = TimetableSession(
        host,
        host,
        settings=config.to_timetable_settings(),
        broadcaster=broadcaster,
        broadcast_topic=config.broadcast_topic,
        delay_recorder=DelayLog(),
    )

    try:
        seed_timetables(session, line_configs)
        restore_state(session, config)
    except (TimetableError, OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to prepare timetables: {e}")
        sys.exit(1)

    replica = TimetableReplica()
    subscriber = TimetableSubscriber(config.broadcast_topic, replica.apply)
    if config.replication_enabled:
        await subscriber.start()

    driver = FrameDriver(
        session,
        frame_interval_ms=config.frame_interval_ms,
        time_scale=config.time_scale,
        advance=host.advance,
    )
    await driver.start()
    try:
        await driver.wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutting down...")
    finally:
        await driver.stop()
        await subscriber.stop()
        session.close()
        save_state(session, config)


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
