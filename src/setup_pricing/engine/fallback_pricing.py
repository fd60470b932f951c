"""
Built-in pricing tables and sizing rules.

These are passed explicitly into the resolver and recommendation functions.
``FallbackPricing.builtin()`` and ``SizingRules()`` build fresh values each
time so nothing in the engine reads module-level mutable state.
"""
from dataclasses import dataclass, field

from .models import (
    AnalogPricing,
    CablePriceEntry,
    CameraPriceMatrix,
    CapacityPriceEntry,
    IpPricing,
    PriceEntry,
)


@dataclass(frozen=True)
class SizingRules:
    """Capacity tiers and sizing assumptions for the recommendation engine."""
    analog_recorder_tiers: tuple[int, ...] = (4, 8, 16, 32)
    analog_power_tiers: tuple[int, ...] = (4, 8, 16)
    ip_tiers: tuple[int, ...] = (8, 16, 32)

    # Assumed average cable run per camera
    average_run_meters: float = 25.0

    min_cameras: int = 1
    max_cameras: int = 32
    default_cameras: int = 4

    def recorder_tiers(self, system: str) -> tuple[int, ...]:
        return self.ip_tiers if system == 'ip' else self.analog_recorder_tiers

    def power_tiers(self, system: str) -> tuple[int, ...]:
        return self.ip_tiers if system == 'ip' else self.analog_power_tiers


def _analog_pricing() -> AnalogPricing:
    return AnalogPricing(
        dvr=(
            CapacityPriceEntry(id='dvr-4-2mp', label='4 Channel DVR (2MP Model)', capacity=4, mrp=5199, sale=2499),
            CapacityPriceEntry(id='dvr-4-5mp', label='4 Channel DVR (5MP Model)', capacity=4, mrp=5799, sale=2799),
            CapacityPriceEntry(id='dvr-8', label='8 Channel DVR', capacity=8, mrp=6699, sale=3799),
            CapacityPriceEntry(id='dvr-16', label='16 Channel DVR', capacity=16, mrp=19999, sale=6999),
            CapacityPriceEntry(id='dvr-32', label='32 Channel DVR', capacity=32, mrp=32999, sale=13999),
        ),
        smps=(
            CapacityPriceEntry(id='smps-4', label='4 Channel SMPS (5A)', capacity=4, mrp=1999, sale=1249),
            CapacityPriceEntry(id='smps-8', label='8 Channel SMPS (10A)', capacity=8, mrp=2699, sale=1699),
            CapacityPriceEntry(id='smps-16', label='16 Channel SMPS (20A)', capacity=16, mrp=3999, sale=2599),
        ),
        camera={
            '2.4mp': CameraPriceMatrix(
                standard=PriceEntry(id='analog-2.4-standard', label='2.4 MP Standard', mrp=1899, sale=1299),
                dual_light=PriceEntry(id='analog-2.4-dual', label='2.4 MP Dual-light', mrp=2199, sale=1499),
            ),
            '5mp': CameraPriceMatrix(
                standard=PriceEntry(id='analog-5-standard', label='5 MP Standard', mrp=2499, sale=1799),
                dual_light=PriceEntry(id='analog-5-dual', label='5 MP Dual-light', mrp=2899, sale=2149),
            ),
        },
        cable=(
            CablePriceEntry(
                id='cable-coaxial-100m',
                label='CCTV Coaxial Cable (100m Roll)',
                coverage_meters=100,
                mrp_per_unit=3199,
                sale_per_unit=2499,
            ),
        ),
    )


def _ip_pricing() -> IpPricing:
    return IpPricing(
        nvr=(
            CapacityPriceEntry(id='nvr-8', label='8 Channel NVR', capacity=8, mrp=8999, sale=5499),
            CapacityPriceEntry(id='nvr-16', label='16 Channel NVR', capacity=16, mrp=12999, sale=7899),
            CapacityPriceEntry(id='nvr-32', label='32 Channel NVR', capacity=32, mrp=18999, sale=11499),
        ),
        poe=(
            CapacityPriceEntry(id='poe-8', label='8 Port PoE Switch', capacity=8, mrp=4999, sale=3199),
            CapacityPriceEntry(id='poe-16', label='16 Port PoE Switch', capacity=16, mrp=6999, sale=4499),
            CapacityPriceEntry(id='poe-32', label='32 Port PoE Switch', capacity=32, mrp=10999, sale=6999),
        ),
        camera={
            '2mp': CameraPriceMatrix(
                standard=PriceEntry(id='ip-2-standard', label='2 MP Standard', mrp=3299, sale=2399),
                dual_light=PriceEntry(id='ip-2-dual', label='2 MP Dual-light', mrp=3699, sale=2699),
            ),
            '4mp': CameraPriceMatrix(
                standard=PriceEntry(id='ip-4-standard', label='4 MP Standard', mrp=4199, sale=2999),
                dual_light=PriceEntry(id='ip-4-dual', label='4 MP Dual-light', mrp=4899, sale=3699),
            ),
        },
        cable=(
            CablePriceEntry(
                id='cable-lan-100m',
                label='LAN Cable (100m Box)',
                coverage_meters=100,
                mrp_per_unit=3399,
                sale_per_unit=2699,
            ),
        ),
    )


def _hdd_options() -> tuple[PriceEntry, ...]:
    return (
        PriceEntry(id='hdd-500', label='500 GB Surveillance HDD', mrp=3499, sale=2699),
        PriceEntry(id='hdd-1tb', label='1 TB Surveillance HDD', mrp=4499, sale=3399),
        PriceEntry(id='hdd-2tb', label='2 TB Surveillance HDD', mrp=5999, sale=4699),
    )


@dataclass(frozen=True)
class FallbackPricing:
    """Price tables used whenever the blueprint is absent or incomplete."""
    analog: AnalogPricing = field(default_factory=_analog_pricing)
    ip: IpPricing = field(default_factory=_ip_pricing)
    hdd_options: tuple[PriceEntry, ...] = field(default_factory=_hdd_options)
    monitor_option: PriceEntry = PriceEntry(
        id='monitor-19', label='19" Surveillance Monitor', mrp=9999, sale=7499,
    )
    # Services carry no separate list price
    installation_option: PriceEntry = PriceEntry(
        id='installation', label='On-site Installation & Configuration', mrp=4500, sale=4500,
    )

    @classmethod
    def builtin(cls) -> 'FallbackPricing':
        """Fresh copy of the built-in tables."""
        return cls()
