"""
Tests for debug probe discovery
"""

from types import SimpleNamespace

import pytest

from probescope.core import probes
from probescope.core.errors import ProbeEnumerationError, ProbeSelectorError
from probescope.core.probes import (
    KNOWN_PROBES,
    ProbeDescriptor,
    ProbeSelector,
    ProbeType,
    find_probe,
    list_all,
)


def _port(device, vid=None, pid=None, serial_number=None):
    """Minimal stand-in for pyserial's ListPortInfo."""
    return SimpleNamespace(device=device, vid=vid, pid=pid, serial_number=serial_number)


@pytest.fixture
def fake_ports(monkeypatch):
    """Replace pyserial's port enumeration with a fixed list."""
    ports = []
    monkeypatch.setattr(probes.serial.tools.list_ports, "comports", lambda: ports)
    return ports


class TestListAll:
    """Test probe enumeration."""

    def test_known_probes_identified(self, fake_ports):
        """Ports with a known VID:PID become descriptors."""
        fake_ports.extend([
            _port("/dev/ttyACM0", 0x0483, 0x374B, "0671FF3833554B3043164817"),
            _port("/dev/ttyACM1", 0x1366, 0x1015, "000683512345"),
        ])
        found = list_all(extra_probes={})

        assert [p.identifier for p in found] == ["STLink V2-1", "J-Link"]
        assert found[0].probe_type is ProbeType.StLink
        assert found[1].probe_type is ProbeType.JLink
        assert found[1].device == "/dev/ttyACM1"

    def test_unknown_and_non_usb_ports_skipped(self, fake_ports):
        """Ports without ids or with unknown ids are ignored."""
        fake_ports.extend([
            _port("/dev/ttyS0"),
            _port("/dev/ttyUSB0", 0x10C4, 0xEA60, "0001"),
            _port("/dev/ttyACM0", 0x2E8A, 0x000C, "E6614103E7"),
        ])
        found = list_all(extra_probes={})

        assert len(found) == 1
        assert found[0].probe_type is ProbeType.CmsisDap

    def test_composite_interfaces_deduplicated(self, fake_ports):
        """Several interfaces of one probe are reported once."""
        fake_ports.extend([
            _port("/dev/ttyACM0", 0x1366, 0x1015, "000683512345"),
            _port("/dev/ttyACM1", 0x1366, 0x1015, "000683512345"),
            _port("/dev/ttyACM2", 0x1366, 0x1015, "000683599999"),
        ])
        found = list_all(extra_probes={})

        assert [p.serial_number for p in found] == ["000683512345", "000683599999"]

    def test_empty_serial_is_none(self, fake_ports):
        """An empty serial number string is treated as absent."""
        fake_ports.append(_port("/dev/ttyACM0", 0x0483, 0x3748, ""))
        found = list_all(extra_probes={})

        assert found[0].serial_number is None
        assert found[0].selector == "0483:3748"

    def test_extra_probes(self, fake_ports):
        """Configured VID:PID entries extend the known table."""
        fake_ports.append(_port("/dev/ttyACM0", 0xC251, 0xF001, "X1"))
        found = list_all(extra_probes={"c251:f001": "CmsisDap"})

        assert len(found) == 1
        assert found[0].identifier == "CmsisDap"
        assert found[0].probe_type is ProbeType.CmsisDap

    def test_invalid_extra_probes_ignored(self, fake_ports):
        """Malformed extra entries are skipped with a warning."""
        fake_ports.append(_port("/dev/ttyACM0", 0xC251, 0xF001, "X1"))
        assert list_all(extra_probes={"c251:f001": "Nope", "zzzz:1": "StLink"}) == []
        assert (0xC251, 0xF001) not in KNOWN_PROBES

    def test_extra_probes_from_config(self, fake_ports, tmp_path):
        """Without an explicit table the configuration is used."""
        (tmp_path / ".probescope.toml").write_text(
            '[probes.extra_probes]\n"c251:f001" = "WchLink"\n', encoding="utf-8"
        )
        fake_ports.append(_port("/dev/ttyACM0", 0xC251, 0xF001))

        found = list_all()
        assert found[0].probe_type is ProbeType.WchLink

    def test_enumeration_failure(self, monkeypatch):
        """OS errors from pyserial become ProbeEnumerationError."""
        def broken():
            raise OSError("permission denied")

        monkeypatch.setattr(probes.serial.tools.list_ports, "comports", broken)
        with pytest.raises(ProbeEnumerationError, match="permission denied"):
            list_all(extra_probes={})


class TestProbeSelector:
    """Test VID:PID[:SERIAL] selectors."""

    def test_parse_without_serial(self):
        """VID and PID are hexadecimal."""
        selector = ProbeSelector.parse("0483:374b")
        assert selector == ProbeSelector(0x0483, 0x374B, None)

    def test_parse_with_serial(self):
        """The serial number keeps any further colons."""
        selector = ProbeSelector.parse("1366:1015:00:06:83")
        assert selector.serial_number == "00:06:83"

    @pytest.mark.parametrize("text", ["", "0483", "xyz:374b", "0483:", "10000:0001"])
    def test_parse_invalid(self, text):
        """Malformed selectors raise ProbeSelectorError."""
        with pytest.raises(ProbeSelectorError):
            ProbeSelector.parse(text)

    def test_matches(self, sample_probes):
        """Serial numbers narrow the match when given."""
        stlink, jlink = sample_probes
        assert ProbeSelector.parse("0483:3748").matches(stlink)
        assert ProbeSelector.parse("1366:1015").matches(jlink)
        assert ProbeSelector.parse("1366:1015:000683512345").matches(jlink)
        assert not ProbeSelector.parse("1366:1015:999").matches(jlink)
        assert not ProbeSelector.parse("0483:3748").matches(jlink)

    def test_selector_round_trip(self, sample_probes):
        """A descriptor's selector selects that descriptor."""
        for probe in sample_probes:
            assert ProbeSelector.parse(probe.selector).matches(probe)

    def test_find_probe(self, sample_probes):
        """find_probe returns the first match or None."""
        assert find_probe(ProbeSelector.parse("1366:1015"), sample_probes) is sample_probes[1]
        assert find_probe(ProbeSelector.parse("dead:beef"), sample_probes) is None


class TestProbeDescriptor:
    """Test the descriptor value type."""

    def test_immutable(self):
        """Descriptors are frozen snapshots."""
        probe = ProbeDescriptor(0x0483, 0x3748, None, "STLink", ProbeType.StLink)
        with pytest.raises(AttributeError):
            probe.identifier = "Other"

    def test_selector_format(self):
        """Selectors use four lowercase hex digits."""
        probe = ProbeDescriptor(0x0D28, 0x0204, "ABC", "DAPLink", ProbeType.CmsisDap)
        assert probe.selector == "0d28:0204:ABC"
