"""
Data models for the setup pricing engine.

Catalog records are frozen dataclasses; selections and state are replaced
(never mutated in place) so every recomputation starts from a plain value.
"""
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import ClassVar, Literal, Mapping, Optional, get_args


SetupSystem = Literal['analog', 'ip']

SYSTEMS: tuple[str, ...] = get_args(SetupSystem)
ANALOG_RESOLUTIONS: tuple[str, ...] = ('2.4mp', '5mp')
IP_RESOLUTIONS: tuple[str, ...] = ('2mp', '4mp')


@dataclass(frozen=True)
class PricePair:
    """Validated MRP / sale pair for a single priced option."""
    mrp: float
    sale: float


@dataclass(frozen=True)
class PriceEntry:
    """A priced option (one drive size, one monitor SKU, ...)."""
    id: str
    label: str
    mrp: Optional[float]
    sale: float


@dataclass(frozen=True)
class CapacityPriceEntry(PriceEntry):
    """A recorder or power/switch option with the channel or port count it supports."""
    capacity: int = 1


@dataclass(frozen=True)
class CablePriceEntry:
    """A cable sold per unit (roll / box) covering a fixed length."""
    id: str
    label: str
    coverage_meters: float
    mrp_per_unit: float
    sale_per_unit: float


@dataclass(frozen=True)
class CameraPriceMatrix:
    """Standard and dual-light price points for one megapixel tier."""
    standard: PriceEntry
    dual_light: PriceEntry

    def variant(self, dual_light: bool) -> PriceEntry:
        return self.dual_light if dual_light else self.standard


def _read_only(camera: Mapping[str, CameraPriceMatrix]) -> Mapping[str, CameraPriceMatrix]:
    return MappingProxyType(dict(camera))


@dataclass(frozen=True)
class AnalogPricing:
    """DVR system pricing: recorders, SMPS units, cameras and coaxial cable."""
    dvr: tuple[CapacityPriceEntry, ...]
    smps: tuple[CapacityPriceEntry, ...]
    camera: Mapping[str, CameraPriceMatrix] = field(hash=False)
    cable: tuple[CablePriceEntry, ...]

    def __post_init__(self):
        object.__setattr__(self, 'camera', _read_only(self.camera))

    @property
    def recorder(self) -> tuple[CapacityPriceEntry, ...]:
        return self.dvr

    @property
    def power(self) -> tuple[CapacityPriceEntry, ...]:
        return self.smps


@dataclass(frozen=True)
class IpPricing:
    """NVR system pricing: recorders, PoE switches, cameras and LAN cable."""
    nvr: tuple[CapacityPriceEntry, ...]
    poe: tuple[CapacityPriceEntry, ...]
    camera: Mapping[str, CameraPriceMatrix] = field(hash=False)
    cable: tuple[CablePriceEntry, ...]

    def __post_init__(self):
        object.__setattr__(self, 'camera', _read_only(self.camera))

    @property
    def recorder(self) -> tuple[CapacityPriceEntry, ...]:
        return self.nvr

    @property
    def power(self) -> tuple[CapacityPriceEntry, ...]:
        return self.poe


@dataclass(frozen=True)
class PricingCatalog:
    """Fully populated pricing catalog for both recorder systems."""
    analog: AnalogPricing
    ip: IpPricing
    hdd_options: tuple[PriceEntry, ...]
    monitor_option: PriceEntry
    installation_option: PriceEntry

    # Slots that were served from built-in fallback pricing
    notes: tuple[str, ...] = ()

    def system_pricing(self, system: SetupSystem) -> AnalogPricing | IpPricing:
        """Return the pricing block for a system ('analog' or 'ip')."""
        return self.ip if system == 'ip' else self.analog

    def find_hdd(self, hdd_id: str) -> PriceEntry:
        """Return the storage option with the given id, else the first one."""
        for entry in self.hdd_options:
            if entry.id == hdd_id:
                return entry
        return self.hdd_options[0]


@dataclass(frozen=True)
class AnalogSelections:
    """User choices for the DVR system."""
    dvr_id: str
    smps_id: str
    cable_id: str
    resolution: str = '2.4mp'
    dual_light: bool = False

    RECORDER_FIELD: ClassVar[str] = 'dvr_id'
    POWER_FIELD: ClassVar[str] = 'smps_id'
    RESOLUTIONS: ClassVar[tuple[str, ...]] = ANALOG_RESOLUTIONS

    @property
    def recorder_id(self) -> str:
        return self.dvr_id

    @property
    def power_id(self) -> str:
        return self.smps_id

    def with_recorder(self, entry_id: str) -> 'AnalogSelections':
        return replace(self, dvr_id=entry_id)

    def with_power(self, entry_id: str) -> 'AnalogSelections':
        return replace(self, smps_id=entry_id)


@dataclass(frozen=True)
class IpSelections:
    """User choices for the NVR system."""
    nvr_id: str
    poe_id: str
    cable_id: str
    resolution: str = '2mp'
    dual_light: bool = False

    RECORDER_FIELD: ClassVar[str] = 'nvr_id'
    POWER_FIELD: ClassVar[str] = 'poe_id'
    RESOLUTIONS: ClassVar[tuple[str, ...]] = IP_RESOLUTIONS

    @property
    def recorder_id(self) -> str:
        return self.nvr_id

    @property
    def power_id(self) -> str:
        return self.poe_id

    def with_recorder(self, entry_id: str) -> 'IpSelections':
        return replace(self, nvr_id=entry_id)

    def with_power(self, entry_id: str) -> 'IpSelections':
        return replace(self, poe_id=entry_id)


@dataclass(frozen=True)
class ConfiguratorState:
    """Everything the user has chosen in one configurator session."""
    analog: AnalogSelections
    ip: IpSelections
    hdd_id: str
    system: SetupSystem = 'analog'
    camera_count: int = 4
    monitor_included: bool = False
    installation_included: bool = True

    @property
    def selections(self) -> AnalogSelections | IpSelections:
        """Selections of the active system."""
        return self.ip if self.system == 'ip' else self.analog


@dataclass
class TraceStep:
    """A single step in the totals computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class QuoteLine:
    """One component family in the system subtotal."""
    component: str
    entry_id: str
    label: str
    quantity: int
    unit_mrp: float
    unit_sale: float
    mrp: float
    sale: float


@dataclass
class SystemSummary:
    """Recorder, power, camera and cable subtotal with a readable breakdown."""
    mrp: float
    sale: float
    breakdown: list[str] = field(default_factory=list)
    lines: list[QuoteLine] = field(default_factory=list)


@dataclass
class AddOnTotal:
    """Storage, monitor or installation contribution."""
    label: str
    mrp: float
    sale: float
    included: bool = True


@dataclass
class OverallTotals:
    """Top-line summary after the MRP floor has been applied."""
    mrp: float
    sale: float
    discount_amount: float
    discount_percent: float


@dataclass
class Totals:
    """Complete result of a totals calculation."""
    system: SystemSummary
    hdd: AddOnTotal
    monitor: AddOnTotal
    installation: AddOnTotal
    overall: OverallTotals
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the totals trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a totals-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class OptionState:
    """Rendering data for one entry in a selectable option list."""
    entry: CapacityPriceEntry | CablePriceEntry
    quantity: int
    total_sale: float
    recommended: bool = False
    disabled: bool = False
