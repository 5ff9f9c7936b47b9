"""
Shared fixtures for ProbeScope tests.
"""

from pathlib import Path
from typing import List

import pytest

import probescope.core.config as config_module
from probescope.core.chips import ChipFamily, ChipVariant
from probescope.core.probes import ProbeDescriptor, ProbeType

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's real configuration."""
    monkeypatch.setattr(config_module.ConfigManager, "DEFAULT_USER_CONFIG", tmp_path / "config.toml")
    monkeypatch.chdir(tmp_path)
    for var in ("PROBESCOPE_TARGET_DIRS", "PROBESCOPE_BUILTIN_TARGETS", "PROBESCOPE_VERIFY_SYNTAX",
                "PROBESCOPE_LOG_LEVEL", "PROBESCOPE_LOG_FILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "_config_manager", None)
    yield
    monkeypatch.setattr(config_module, "_config_manager", None)


@pytest.fixture()
def sample_families() -> List[ChipFamily]:
    """A small in-memory chip catalog."""
    return [
        ChipFamily(name="STM32F4 Series", variants=[
            ChipVariant("STM32F401CBUx"),
            ChipVariant("STM32F411CEUx"),
            ChipVariant("STM32F407VGTx"),
        ]),
        ChipFamily(name="nRF52 Series", variants=[
            ChipVariant("nRF52832_xxAA"),
            ChipVariant("nRF52840_xxAA"),
        ]),
        ChipFamily(name="STM32G0 Series", variants=[
            ChipVariant("STM32G071RBTx"),
        ]),
    ]


@pytest.fixture()
def sample_probes() -> List[ProbeDescriptor]:
    """Two attached probes, one without a serial number."""
    return [
        ProbeDescriptor(
            vendor_id=0x0483,
            product_id=0x3748,
            serial_number=None,
            identifier="STLink",
            probe_type=ProbeType.StLink,
        ),
        ProbeDescriptor(
            vendor_id=0x1366,
            product_id=0x1015,
            serial_number="000683512345",
            identifier="J-Link",
            probe_type=ProbeType.JLink,
            device="/dev/ttyACM1",
        ),
    ]


@pytest.fixture()
def baseline_zsh() -> str:
    """Pinned zsh script in the generator's output format."""
    return (FIXTURES_DIR / "baseline.zsh").read_text(encoding="utf-8")


@pytest.fixture()
def baseline_bash() -> str:
    """Pinned bash script in the generator's output format."""
    return (FIXTURES_DIR / "baseline.bash").read_text(encoding="utf-8")
