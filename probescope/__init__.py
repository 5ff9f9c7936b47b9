"""
ProbeScope - embedded debug probe command line tool

Lists attached debug probes and known chips, and provides live shell
completion for chip names and probe selectors.
"""

__version__ = "0.4.0"
__license__ = "MIT"

from probescope.core.chips import ChipCatalog
from probescope.core.probes import ProbeDescriptor, ProbeType

__all__ = ["ChipCatalog", "ProbeDescriptor", "ProbeType"]
