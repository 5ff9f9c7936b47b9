"""
Unit tests for the chip and probe completion listers
"""

import io
import re

import pytest

from probescope.cli.completions.lister import format_probe_line, list_chips, list_probes
from probescope.cli.completions.models import ShellKind
from probescope.core.errors import CatalogReadError, ProbeEnumerationError
from probescope.core.probes import ProbeDescriptor, ProbeType

PROBE_LINE = re.compile(r"^[0-9a-f]{4}:[0-9a-f]{4}(:[^ ]+)?B\[(?P<identifier>.+) \[(?P<type>\w+)\] B\]$")


class TestListChips:
    """Test chip name listing."""

    def test_all_chips_in_catalog_order(self, sample_families):
        """An empty prefix lists every variant in catalog order."""
        out = io.StringIO()
        names = list_chips(out, "", families=sample_families)

        assert names == [
            "STM32F401CBUx",
            "STM32F411CEUx",
            "STM32F407VGTx",
            "nRF52832_xxAA",
            "nRF52840_xxAA",
            "STM32G071RBTx",
        ]
        assert out.getvalue() == "".join(f"{name}\n" for name in names)

    def test_prefix_filter(self, sample_families):
        """Only names starting with the prefix are written."""
        out = io.StringIO()
        names = list_chips(out, "STM32F4", families=sample_families)

        assert names == ["STM32F401CBUx", "STM32F411CEUx", "STM32F407VGTx"]
        assert all(name.startswith("STM32F4") for name in out.getvalue().splitlines())

    def test_prefix_is_case_sensitive(self, sample_families):
        """Prefix matching does not fold case."""
        out = io.StringIO()
        assert list_chips(out, "nrf52", families=sample_families) == []
        assert list_chips(out, "nRF52", families=sample_families) == ["nRF52832_xxAA", "nRF52840_xxAA"]

    @pytest.mark.parametrize("prefix", ["XYZ", "STM32F4zz", "nRF52840_xxAAB", " "])
    def test_unknown_prefix_yields_nothing(self, sample_families, prefix):
        """A prefix absent from the catalog gives an empty listing."""
        out = io.StringIO()
        assert list_chips(out, prefix, families=sample_families) == []
        assert out.getvalue() == ""

    def test_uses_configured_catalog(self, monkeypatch, sample_families):
        """Without explicit families the catalog facility is queried."""
        import probescope.core.chips as chips

        monkeypatch.setattr(chips, "families", lambda: sample_families)
        out = io.StringIO()
        assert list_chips(out, "STM32G0") == ["STM32G071RBTx"]

    def test_builtin_catalog(self):
        """The shipped target files can be listed."""
        out = io.StringIO()
        names = list_chips(out, "STM32F401")
        assert "STM32F401CBUx" in names
        assert all(name.startswith("STM32F401") for name in names)

    def test_catalog_error_propagates(self, monkeypatch):
        """An unreadable catalog aborts the listing."""
        import probescope.core.chips as chips

        def broken():
            raise CatalogReadError("target directory not found")

        monkeypatch.setattr(chips, "families", broken)
        out = io.StringIO()
        with pytest.raises(CatalogReadError):
            list_chips(out, "")
        assert out.getvalue() == ""


class TestFormatProbeLine:
    """Test the probe candidate line format."""

    def test_stlink_without_serial(self):
        """Ids are rendered as four lowercase hex digits, no serial segment."""
        probe = ProbeDescriptor(0x0483, 0x3748, None, "STLink", ProbeType.StLink)
        assert format_probe_line(probe) == "0483:3748B[STLink [StLink] B]"

    def test_serial_number_segment(self, sample_probes):
        """A serial number is appended after a colon."""
        assert format_probe_line(sample_probes[1]) == "1366:1015:000683512345B[J-Link [JLink] B]"

    def test_lowercase_zero_padded_hex(self):
        """Small and large ids are padded and lowercased."""
        probe = ProbeDescriptor(0x0D28, 0xABCD, None, "DAPLink", ProbeType.CmsisDap)
        assert format_probe_line(probe).startswith("0d28:abcd")

    def test_zsh_escaping(self, sample_probes):
        """zsh candidates escape colons and inner brackets."""
        assert format_probe_line(sample_probes[0], ShellKind.ZSH) == "0483\\:3748B[STLink \\[StLink\\] B]"
        assert format_probe_line(sample_probes[1], ShellKind.ZSH) == (
            "1366\\:1015\\:000683512345B[J-Link \\[JLink\\] B]"
        )

    def test_empty_serial_keeps_separator(self):
        """An empty serial number is still a serial number; only None omits it."""
        probe = ProbeDescriptor(0x0483, 0x3748, "", "STLink", ProbeType.StLink)
        assert format_probe_line(probe) == "0483:3748:B[STLink [StLink] B]"
        assert format_probe_line(probe, ShellKind.ZSH) == "0483\\:3748\\:B[STLink \\[StLink\\] B]"


class TestListProbes:
    """Test attached probe listing."""

    def test_scenario_stlink_empty_prefix(self):
        """The ST-Link scenario produces the documented line."""
        probe = ProbeDescriptor(
            vendor_id=0x0483,
            product_id=0x3748,
            serial_number=None,
            identifier="STLink",
            probe_type=ProbeType.StLink,
        )
        out = io.StringIO()
        lines = list_probes(out, "", attached=[probe])

        assert lines == ["0483:3748B[STLink [StLink] B]"]
        assert out.getvalue() == "0483:3748B[STLink [StLink] B]\n"

    def test_prefix_filters_on_identifier(self, sample_probes):
        """The prefix applies to the identifier, not the ids."""
        out = io.StringIO()
        assert list_probes(out, "J", attached=sample_probes) == ["1366:1015:000683512345B[J-Link [JLink] B]"]
        assert list_probes(io.StringIO(), "0483", attached=sample_probes) == []

    def test_every_line_matches_template(self, sample_probes):
        """Each emitted line follows the fixed template."""
        out = io.StringIO()
        list_probes(out, "", attached=sample_probes)

        lines = out.getvalue().splitlines()
        assert len(lines) == 2
        for line, probe in zip(lines, sample_probes):
            match = PROBE_LINE.match(line)
            assert match is not None, line
            assert match.group("identifier") == probe.identifier
            assert match.group("type") == probe.probe_type.name

    def test_no_probes(self):
        """No attached probes means no output."""
        out = io.StringIO()
        assert list_probes(out, "", attached=[]) == []
        assert out.getvalue() == ""

    def test_enumerates_when_not_given(self, monkeypatch, sample_probes):
        """Without explicit probes the host is enumerated."""
        import probescope.core.probes as probes

        monkeypatch.setattr(probes, "list_all", lambda: sample_probes)
        out = io.StringIO()
        assert len(list_probes(out, "")) == 2

    def test_enumeration_error_propagates(self, monkeypatch):
        """A failing enumeration aborts the listing."""
        import probescope.core.probes as probes

        def broken():
            raise ProbeEnumerationError("usb subsystem unavailable")

        monkeypatch.setattr(probes, "list_all", broken)
        with pytest.raises(ProbeEnumerationError):
            list_probes(io.StringIO(), "")
