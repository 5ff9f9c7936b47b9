"""
Dynamic completion candidates for ProbeScope.

Lists chip names and attached probes for the shell completion callbacks.
Output is one candidate per line, written to the given text sink.
"""

from typing import List, Optional, Sequence, TextIO

from probescope.cli.completions.models import ShellKind
from probescope.core import chips, probes
from probescope.core.chips import ChipFamily
from probescope.core.probes import ProbeDescriptor


def list_chips(
    f: TextIO,
    starts_with: str = "",
    families: Optional[Sequence[ChipFamily]] = None,
) -> List[str]:
    """
    Write every chip variant name starting with ``starts_with``.

    Names are written in catalog order, one per line, exactly as the
    ``--chip`` option expects them.

    Args:
        f: Output sink
        starts_with: Prefix typed so far (case sensitive)
        families: Chip families to list; the configured catalog when omitted

    Returns:
        The names written

    Raises:
        CatalogReadError: If the catalog cannot be read
    """
    if families is None:
        families = chips.families()

    names = []
    for family in families:
        for variant in family.variants:
            if variant.name.startswith(starts_with):
                f.write(f"{variant.name}\n")
                names.append(variant.name)
    return names


def format_probe_line(probe: ProbeDescriptor, shell: ShellKind = ShellKind.BASH) -> str:
    """
    Render a probe as ``VVVV:PPPP[:SERIAL]B[IDENTIFIER [TYPE] B]``.

    For zsh the colons and the inner brackets are backslash escaped, as
    ``_values`` would otherwise split the candidate on them.
    """
    if shell == ShellKind.ZSH:
        colon, lbracket, rbracket = "\\:", "\\[", "\\]"
    else:
        colon, lbracket, rbracket = ":", "[", "]"

    serial = f"{colon}{probe.serial_number}" if probe.serial_number is not None else ""
    return (
        f"{probe.vendor_id:04x}{colon}{probe.product_id:04x}{serial}"
        f"B[{probe.identifier} {lbracket}{probe.probe_type.name}{rbracket} B]"
    )


def list_probes(
    f: TextIO,
    starts_with: str = "",
    shell: ShellKind = ShellKind.BASH,
    attached: Optional[Sequence[ProbeDescriptor]] = None,
) -> List[str]:
    """
    Write one line per attached probe whose identifier starts with ``starts_with``.

    Args:
        f: Output sink
        starts_with: Prefix of the probe identifier (case sensitive)
        shell: Shell that consumes the list, selects the escaping
        attached: Probes to list; enumerated from the host when omitted

    Returns:
        The lines written

    Raises:
        ProbeEnumerationError: If enumeration fails
    """
    if attached is None:
        attached = probes.list_all()

    lines = []
    for probe in attached:
        if probe.identifier.startswith(starts_with):
            line = format_probe_line(probe, shell)
            f.write(f"{line}\n")
            lines.append(line)
    return lines
