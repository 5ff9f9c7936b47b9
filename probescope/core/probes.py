"""
Debug probe discovery for ProbeScope.

Scans USB ports with pyserial and identifies known debug probes by
VID:PID. Most probes (ST-Link V2-1/V3, J-Link OB, CMSIS-DAP adapters,
ESP USB-JTAG) expose a virtual COM port, which is what makes them visible
to the enumeration.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

import serial.tools.list_ports

from probescope.core.errors import ProbeEnumerationError, ProbeSelectorError

logger = logging.getLogger(__name__)


class ProbeType(Enum):
    """Debug probe families."""
    CmsisDap = "cmsis-dap"
    StLink = "stlink"
    JLink = "jlink"
    EspJtag = "esp-usb-jtag"
    Ftdi = "ftdi"
    WchLink = "wch-link"


KNOWN_PROBES: Dict[Tuple[int, int], Tuple[str, ProbeType]] = {
    (0x0483, 0x3748): ("STLink V2", ProbeType.StLink),
    (0x0483, 0x374B): ("STLink V2-1", ProbeType.StLink),
    (0x0483, 0x374E): ("STLink V3", ProbeType.StLink),
    (0x0483, 0x374F): ("STLink V3", ProbeType.StLink),
    (0x0483, 0x3753): ("STLink V3", ProbeType.StLink),
    (0x1366, 0x0101): ("J-Link", ProbeType.JLink),
    (0x1366, 0x0105): ("J-Link OB", ProbeType.JLink),
    (0x1366, 0x1015): ("J-Link", ProbeType.JLink),
    (0x1366, 0x1051): ("J-Link", ProbeType.JLink),
    (0x0D28, 0x0204): ("DAPLink CMSIS-DAP", ProbeType.CmsisDap),
    (0x2E8A, 0x000C): ("Picoprobe CMSIS-DAP", ProbeType.CmsisDap),
    (0x1FC9, 0x0143): ("MCU-Link CMSIS-DAP", ProbeType.CmsisDap),
    (0x0451, 0xBEF3): ("XDS110 CMSIS-DAP", ProbeType.CmsisDap),
    (0x303A, 0x1001): ("ESP JTAG", ProbeType.EspJtag),
    (0x0403, 0x6010): ("FTDI FT2232H", ProbeType.Ftdi),
    (0x0403, 0x6014): ("FTDI FT232H", ProbeType.Ftdi),
    (0x1A86, 0x8010): ("WCH-Link", ProbeType.WchLink),
}


@dataclass(frozen=True)
class ProbeDescriptor:
    """Snapshot of one attached debug probe."""
    vendor_id: int
    product_id: int
    serial_number: Optional[str]
    identifier: str
    probe_type: ProbeType
    device: Optional[str] = None

    @property
    def selector(self) -> str:
        """The ``VID:PID[:SERIAL]`` string that selects this probe."""
        base = f"{self.vendor_id:04x}:{self.product_id:04x}"
        if self.serial_number:
            return f"{base}:{self.serial_number}"
        return base


@dataclass(frozen=True)
class ProbeSelector:
    """Parsed ``VID:PID[:SERIAL]`` probe selector."""
    vendor_id: int
    product_id: int
    serial_number: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "ProbeSelector":
        """
        Parse a selector such as ``0483:374b`` or ``0483:374b:0671FF``.

        Raises:
            ProbeSelectorError: If the selector is malformed
        """
        parts = text.split(":", 2)
        if len(parts) < 2:
            raise ProbeSelectorError(f"Invalid probe selector '{text}', expected VID:PID[:SERIAL]")
        try:
            vendor_id = int(parts[0], 16)
            product_id = int(parts[1], 16)
        except ValueError:
            raise ProbeSelectorError(f"Invalid VID:PID in probe selector '{text}'") from None
        if not (0 <= vendor_id <= 0xFFFF and 0 <= product_id <= 0xFFFF):
            raise ProbeSelectorError(f"VID and PID must be 16-bit values in '{text}'")
        serial_number = parts[2] if len(parts) == 3 and parts[2] else None
        return cls(vendor_id, product_id, serial_number)

    def matches(self, probe: ProbeDescriptor) -> bool:
        """Check whether ``probe`` is selected."""
        if (probe.vendor_id, probe.product_id) != (self.vendor_id, self.product_id):
            return False
        return self.serial_number is None or probe.serial_number == self.serial_number


def _probe_table(extra_probes: Optional[Mapping[str, str]]) -> Dict[Tuple[int, int], Tuple[str, ProbeType]]:
    table = dict(KNOWN_PROBES)
    for key, type_name in (extra_probes or {}).items():
        vid, _, pid = key.partition(":")
        try:
            probe_type = ProbeType[type_name]
            table[(int(vid, 16), int(pid, 16))] = (type_name, probe_type)
        except (KeyError, ValueError):
            logger.warning(f"Ignoring invalid extra probe entry {key} = {type_name}")
    return table


def list_all(extra_probes: Optional[Mapping[str, str]] = None) -> List[ProbeDescriptor]:
    """
    List the debug probes currently attached to the host.

    Args:
        extra_probes: Additional ``"vvvv:pppp" -> ProbeType name`` entries;
            read from the configuration when omitted

    Returns:
        One descriptor per probe, in enumeration order

    Raises:
        ProbeEnumerationError: If the host port enumeration fails
    """
    if extra_probes is None:
        from probescope.core.config import get_config
        extra_probes = get_config().probes.extra_probes

    table = _probe_table(extra_probes)

    try:
        ports = serial.tools.list_ports.comports()
    except (OSError, RuntimeError) as e:
        raise ProbeEnumerationError(f"Failed to enumerate USB devices: {e}") from e

    probes: List[ProbeDescriptor] = []
    seen = set()
    for port in ports:
        if port.vid is None or port.pid is None:
            continue
        known = table.get((port.vid, port.pid))
        if known is None:
            continue

        # Composite probes expose several interfaces with the same serial
        key = (port.vid, port.pid, port.serial_number)
        if key in seen:
            continue
        seen.add(key)

        name, probe_type = known
        probes.append(ProbeDescriptor(
            vendor_id=port.vid,
            product_id=port.pid,
            serial_number=port.serial_number or None,
            identifier=name,
            probe_type=probe_type,
            device=port.device,
        ))

    logger.debug(f"Found {len(probes)} debug probe(s) among {len(ports)} port(s)")
    return probes


def find_probe(selector: ProbeSelector, probes: Optional[List[ProbeDescriptor]] = None) -> Optional[ProbeDescriptor]:
    """Return the first attached probe matching ``selector``."""
    for probe in probes if probes is not None else list_all():
        if selector.matches(probe):
            return probe
    return None
