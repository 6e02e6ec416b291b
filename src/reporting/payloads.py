"""
Typed report payloads.

`report_data` arrives as an untyped mapping. Each report type has its own
payload variant carrying only the fields the reporting core computes with;
navigation, weather and engine telemetry stays in the stored `report_data`
untouched.

Consumption and supply are normalised into BunkerQuantities here, so the
bunker ledger never has to know which form a report type uses:

- departure / noon: per-consumer engine figures (main engine, boiler,
  auxiliaries), summed per fuel
- arrival: `<substance>_consumed`
- berth: `harbour_<substance>_consumed`
- all types: `supply_<substance>` (departure/noon) or `<substance>_supplied`
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .errors import InvalidInputError
from .types import SUBSTANCES, BunkerQuantities, CargoStatus, PassageState, ReportType

ENGINE_FIELDS = (
    "me_lsifo",
    "me_lsmgo",
    "me_cyl_oil",
    "me_me_oil",
    "me_ae_oil",
    "boiler_lsifo",
    "boiler_lsmgo",
    "aux_lsifo",
    "aux_lsmgo",
)


# =============================================================================
# Field readers
# =============================================================================

class _Reader:
    """Pulls typed values out of a raw payload, collecting every problem."""

    def __init__(self, data: Mapping[str, Any]):
        self.data = data
        self.missing: List[str] = []
        self.invalid: List[str] = []

    def _present(self, key: str) -> bool:
        value = self.data.get(key)
        return value is not None and not (isinstance(value, str) and value.strip() == "")

    def number(self, key: str, required: bool = False) -> float:
        if not self._present(key):
            if required:
                self.missing.append(key)
            return 0.0
        value = self.data[key]
        if isinstance(value, bool):
            self.invalid.append(key)
            return 0.0
        try:
            number = float(value)
        except (TypeError, ValueError):
            self.invalid.append(key)
            return 0.0
        if not math.isfinite(number) or number < 0:
            self.invalid.append(key)
            return 0.0
        return number

    def text(self, key: str, required: bool = False) -> Optional[str]:
        if not self._present(key):
            if required:
                self.missing.append(key)
            return None
        value = self.data[key]
        if not isinstance(value, str):
            self.invalid.append(key)
            return None
        return value.strip()

    def choice(self, key: str, enum, required: bool = False, default=None):
        raw = self.text(key, required=required)
        if raw is None:
            return default
        try:
            return enum(raw.lower())
        except ValueError:
            self.invalid.append(key)
            return default

    def day(self, key: str = "date") -> Optional[date]:
        if not self._present(key):
            return None
        value = self.data[key]
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            self.invalid.append(key)
            return None

    def quantities(self, pattern: str) -> BunkerQuantities:
        """Read six substances using a key pattern like 'supply_{}'."""
        return BunkerQuantities(**{s: self.number(pattern.format(s)) for s in SUBSTANCES})

    def any_present(self, pattern: str) -> bool:
        return any(self._present(pattern.format(s)) for s in SUBSTANCES)

    def raise_if_invalid(self, report_type: ReportType):
        if self.missing:
            raise InvalidInputError(
                f"Missing required fields for {report_type.value} report: "
                + ", ".join(self.missing),
                fields=list(self.missing),
            )
        if self.invalid:
            raise InvalidInputError(
                f"Invalid values for {report_type.value} report: " + ", ".join(self.invalid),
                fields=list(self.invalid),
            )


# =============================================================================
# Payload variants
# =============================================================================

@dataclass
class EngineConsumption:
    """Sea-passage consumption broken down by consumer."""
    me_lsifo: float = 0.0
    me_lsmgo: float = 0.0
    me_cyl_oil: float = 0.0
    me_me_oil: float = 0.0
    me_ae_oil: float = 0.0
    boiler_lsifo: float = 0.0
    boiler_lsmgo: float = 0.0
    aux_lsifo: float = 0.0
    aux_lsmgo: float = 0.0

    def totals(self) -> BunkerQuantities:
        return BunkerQuantities(
            lsifo=self.me_lsifo + self.boiler_lsifo + self.aux_lsifo,
            lsmgo=self.me_lsmgo + self.boiler_lsmgo + self.aux_lsmgo,
            cyl_oil=self.me_cyl_oil,
            me_oil=self.me_me_oil,
            ae_oil=self.me_ae_oil,
            vol_oil=0.0,
        )


@dataclass
class DeparturePayload:
    departure_port: str
    destination_port: str
    voyage_distance: float
    harbour_distance: float
    cargo_status: CargoStatus
    cargo_type: Optional[str] = None
    cargo_quantity: float = 0.0
    report_date: Optional[date] = None
    initial_rob: Optional[BunkerQuantities] = None
    engine: EngineConsumption = field(default_factory=EngineConsumption)
    supply: BunkerQuantities = field(default_factory=BunkerQuantities)

    report_type = ReportType.DEPARTURE

    def consumption(self) -> BunkerQuantities:
        return self.engine.totals()


@dataclass
class NoonPayload:
    passage_state: PassageState
    distance_since_last_report: float
    report_date: Optional[date] = None
    engine: EngineConsumption = field(default_factory=EngineConsumption)
    supply: BunkerQuantities = field(default_factory=BunkerQuantities)

    report_type = ReportType.NOON

    def consumption(self) -> BunkerQuantities:
        return self.engine.totals()


@dataclass
class ArrivalPayload:
    distance_since_last_report: float
    report_date: Optional[date] = None
    consumed: BunkerQuantities = field(default_factory=BunkerQuantities)
    supply: BunkerQuantities = field(default_factory=BunkerQuantities)

    report_type = ReportType.ARRIVAL

    def consumption(self) -> BunkerQuantities:
        return self.consumed


@dataclass
class BerthPayload:
    report_date: Optional[date] = None
    consumed: BunkerQuantities = field(default_factory=BunkerQuantities)
    supply: BunkerQuantities = field(default_factory=BunkerQuantities)
    cargo_loaded: float = 0.0
    cargo_unloaded: float = 0.0

    report_type = ReportType.BERTH

    def consumption(self) -> BunkerQuantities:
        return self.consumed


ReportPayload = Union[DeparturePayload, NoonPayload, ArrivalPayload, BerthPayload]


# =============================================================================
# Parsers
# =============================================================================

def _engine(r: _Reader) -> EngineConsumption:
    return EngineConsumption(**{name: r.number(name) for name in ENGINE_FIELDS})


def _parse_departure(r: _Reader) -> DeparturePayload:
    payload = DeparturePayload(
        departure_port=r.text("departure_port", required=True),
        destination_port=r.text("destination_port", required=True),
        voyage_distance=r.number("voyage_distance", required=True),
        harbour_distance=r.number("harbour_distance", required=True),
        cargo_status=r.choice("cargo_status", CargoStatus, required=True),
        cargo_type=r.text("cargo_type"),
        cargo_quantity=r.number("cargo_quantity"),
        report_date=r.day(),
        engine=_engine(r),
        supply=r.quantities("supply_{}"),
    )
    if r.any_present("initial_rob_{}"):
        payload.initial_rob = r.quantities("initial_rob_{}")
    return payload


def _parse_noon(r: _Reader) -> NoonPayload:
    return NoonPayload(
        passage_state=r.choice("passage_state", PassageState, required=True),
        distance_since_last_report=r.number("distance_since_last_report", required=True),
        report_date=r.day(),
        engine=_engine(r),
        supply=r.quantities("supply_{}"),
    )


def _parse_arrival(r: _Reader) -> ArrivalPayload:
    return ArrivalPayload(
        distance_since_last_report=r.number("distance_since_last_report", required=True),
        report_date=r.day(),
        consumed=r.quantities("{}_consumed"),
        supply=r.quantities("{}_supplied"),
    )


def _parse_berth(r: _Reader) -> BerthPayload:
    return BerthPayload(
        report_date=r.day(),
        consumed=r.quantities("harbour_{}_consumed"),
        supply=r.quantities("{}_supplied"),
        cargo_loaded=r.number("cargo_loaded"),
        cargo_unloaded=r.number("cargo_unloaded"),
    )


_PARSERS: Dict[ReportType, Callable[[_Reader], ReportPayload]] = {
    ReportType.DEPARTURE: _parse_departure,
    ReportType.NOON: _parse_noon,
    ReportType.ARRIVAL: _parse_arrival,
    ReportType.BERTH: _parse_berth,
}


def parse_report_type(value: Any) -> ReportType:
    """Resolve a report type name, raising InvalidInputError for unknown names."""
    if isinstance(value, ReportType):
        return value
    try:
        return ReportType(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in ReportType)
        raise InvalidInputError(f"Invalid report type '{value}'. Expected one of: {valid}")


def parse_payload(report_type: ReportType, data: Optional[Mapping[str, Any]]) -> ReportPayload:
    """
    Validate a raw report_data mapping and build the typed payload.

    Raises:
        InvalidInputError: required fields missing, or values not
            non-negative finite numbers / known enum names / ISO dates.
    """
    if not isinstance(data, Mapping):
        raise InvalidInputError("report_data must be an object")
    reader = _Reader(data)
    payload = _PARSERS[report_type](reader)
    reader.raise_if_invalid(report_type)
    return payload
