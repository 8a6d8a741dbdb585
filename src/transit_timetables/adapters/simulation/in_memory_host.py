"""Minimal transit simulation implementing the host protocols."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from transit_timetables.domain.contracts.frequency_provider import FrequencyProviderProtocol
from transit_timetables.domain.contracts.transit_host import TransitHostProtocol
from transit_timetables.domain.models.line_configuration import (
    LineConfiguration,  # noqa: TC001 - Runtime dependency: stored on _SimLine
)
from transit_timetables.domain.models.vehicle_state import VehicleState

logger = logging.getLogger(__name__)


@dataclass
class _SimVehicle:
    vehicle: int
    line: int
    stop_index: int
    at_stop: bool = False
    next_arrival: float = 0.0
    arrived_at: float = 0.0
    auto_departure: bool = True


@dataclass
class _SimLine:
    config: LineConfiguration
    roster: list[int] = field(default_factory=list)
    # stop index (1-based) -> vehicle -> time of its last departure
    last_departures: dict[int, dict[int, float]] = field(default_factory=dict)


class InMemoryTransitHost(TransitHostProtocol, FrequencyProviderProtocol):
    """Vehicles circulate over looped routes, dwelling at every stop.

    A vehicle standing at a stop leaves on its own once its dwell time has
    passed, unless its automatic departure was stopped; then it waits until
    it is released or made to depart.
    """

    def __init__(self, lines: list[LineConfiguration] | None = None, start_time: float = 0.0):
        self._time = start_time
        self._lines: dict[int, _SimLine] = {}
        self._vehicles: dict[int, _SimVehicle] = {}
        self._vehicle_ids = itertools.count(1)
        for config in lines or []:
            self.add_line(config)

    # -- network management --------------------------------------------------

    def add_line(self, config: LineConfiguration) -> list[int]:
        """Add a line and spread its vehicles evenly over the route.

        Returns:
            The IDs of the created vehicles, in roster order.
        """
        if config.line_id in self._lines:
            raise ValueError(f"Line {config.line_id} already exists")
        sim_line = _SimLine(config)
        self._lines[config.line_id] = sim_line
        for position in range(config.vehicle_count):
            self.add_vehicle(config.line_id, (position * config.stop_count) // config.vehicle_count)
        logger.info(
            f"Added line {config.line_id} ({config.name}) with {config.stop_count} stops "
            f"and {config.vehicle_count} vehicle(s)"
        )
        return list(sim_line.roster)

    def remove_line(self, line: int) -> None:
        sim_line = self._lines.pop(line, None)
        if sim_line is None:
            return
        for vehicle in sim_line.roster:
            self._vehicles.pop(vehicle, None)
        logger.info(f"Removed line {line}")

    def add_vehicle(self, line: int, stop_index: int = 0) -> int:
        """Add a vehicle heading to a stop (0-based) of a line."""
        sim_line = self._lines[line]
        vehicle = next(self._vehicle_ids)
        self._vehicles[vehicle] = _SimVehicle(
            vehicle=vehicle,
            line=line,
            stop_index=stop_index % sim_line.config.stop_count,
            next_arrival=self._time + sim_line.config.leg_seconds,
        )
        sim_line.roster.append(vehicle)
        return vehicle

    def remove_vehicle(self, vehicle: int) -> None:
        sim_vehicle = self._vehicles.pop(vehicle, None)
        if sim_vehicle is not None:
            self._lines[sim_vehicle.line].roster.remove(vehicle)

    def place_at_stop(self, vehicle: int, stop_index: int) -> None:
        """Put a vehicle at a stop (0-based) with its doors opening now."""
        sim_vehicle = self._vehicles[vehicle]
        sim_vehicle.stop_index = stop_index
        sim_vehicle.at_stop = True
        sim_vehicle.arrived_at = self._time
        sim_vehicle.auto_departure = True

    def advance(self, seconds: float) -> None:
        """Move simulation time forward and let vehicles arrive and leave."""
        self._time += seconds
        for sim_vehicle in list(self._vehicles.values()):
            config = self._lines[sim_vehicle.line].config
            if not sim_vehicle.at_stop:
                if self._time >= sim_vehicle.next_arrival:
                    sim_vehicle.at_stop = True
                    sim_vehicle.arrived_at = sim_vehicle.next_arrival
                    sim_vehicle.auto_departure = True
            elif (
                sim_vehicle.auto_departure
                and self._time >= sim_vehicle.arrived_at + config.dwell_seconds
            ):
                self._leave(sim_vehicle)

    def _leave(self, sim_vehicle: _SimVehicle) -> None:
        sim_line = self._lines[sim_vehicle.line]
        stop = sim_vehicle.stop_index + 1
        sim_line.last_departures.setdefault(stop, {})[sim_vehicle.vehicle] = self._time
        sim_vehicle.at_stop = False
        sim_vehicle.auto_departure = True
        sim_vehicle.stop_index = stop % sim_line.config.stop_count
        sim_vehicle.next_arrival = self._time + sim_line.config.leg_seconds

    # -- TransitHostProtocol -------------------------------------------------

    def get_time(self) -> float:
        return self._time

    def get_lines(self) -> list[int]:
        return sorted(self._lines)

    def line_exists(self, line: int) -> bool:
        return line in self._lines

    def get_line_vehicles(self, line: int) -> list[int]:
        sim_line = self._lines.get(line)
        return list(sim_line.roster) if sim_line else []

    def get_vehicle_state(self, vehicle: int) -> VehicleState | None:
        sim_vehicle = self._vehicles.get(vehicle)
        if sim_vehicle is None:
            return None
        return VehicleState(
            vehicle=vehicle,
            line=sim_vehicle.line,
            stop_index=sim_vehicle.stop_index,
            at_terminal=sim_vehicle.at_stop,
            auto_departure=sim_vehicle.auto_departure,
            doors_open=sim_vehicle.at_stop,
            doors_time=int(sim_vehicle.arrived_at) if sim_vehicle.at_stop else 0,
        )

    def get_stop_count(self, line: int) -> int:
        sim_line = self._lines.get(line)
        return sim_line.config.stop_count if sim_line else 0

    def get_wait_limits(self, line: int, stop: int) -> tuple[int, int]:
        config = self._lines[line].config
        return config.min_wait_seconds, config.max_wait_seconds

    def get_vehicles_at_stop(self, line: int, stop: int) -> list[int]:
        sim_line = self._lines.get(line)
        if sim_line is None:
            return []
        return [
            vehicle
            for vehicle in sim_line.roster
            if self._vehicles[vehicle].at_stop and self._vehicles[vehicle].stop_index + 1 == stop
        ]

    def get_last_departure_times(self, line: int, stop: int) -> list[float]:
        sim_line = self._lines.get(line)
        if sim_line is None:
            return []
        return list(sim_line.last_departures.get(stop, {}).values())

    def depart_vehicle(self, vehicle: int) -> None:
        sim_vehicle = self._vehicles.get(vehicle)
        if sim_vehicle is not None and sim_vehicle.at_stop:
            self._leave(sim_vehicle)

    def stop_auto_departure(self, vehicle: int) -> None:
        sim_vehicle = self._vehicles.get(vehicle)
        if sim_vehicle is not None:
            sim_vehicle.auto_departure = False

    def restart_auto_departure(self, vehicle: int) -> None:
        sim_vehicle = self._vehicles.get(vehicle)
        if sim_vehicle is not None:
            sim_vehicle.auto_departure = True

    # -- FrequencyProviderProtocol -------------------------------------------

    def get_frequency_seconds(self, line: int) -> int | None:
        """Configured frequency, or the round trip time shared by the line's vehicles."""
        sim_line = self._lines.get(line)
        if sim_line is None or not sim_line.roster:
            return None
        config = sim_line.config
        if config.frequency_seconds:
            return config.frequency_seconds
        round_trip = config.stop_count * (config.leg_seconds + config.dwell_seconds)
        return round_trip // len(sim_line.roster)
