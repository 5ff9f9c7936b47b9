"""
Entry point of ``<prog> complete <shell> <kind> <prefix>``.

Routes a completion request to the script generator and injector, or to
the chip/probe listers. The artifact is rendered completely before
anything is written, so a failure never leaves partial output behind.
"""

import io
import logging
from typing import Optional, TextIO

import click

from probescope.cli.completions.generator import get_completion_script
from probescope.cli.completions.injector import inject_dynamic_completions
from probescope.cli.completions.lister import list_chips, list_probes
from probescope.cli.completions.models import CompleteKind, CompletionRequest

logger = logging.getLogger(__name__)


def render_completion(
    request: CompletionRequest,
    command: Optional[click.Command] = None,
    verify_syntax: bool = False,
) -> str:
    """
    Produce the artifact for ``request``.

    Args:
        request: Shell, kind, prefix and invocation name
        command: Command tree for script generation; the ProbeScope app when omitted
        verify_syntax: Check generated scripts with ``<shell> -n``

    Returns:
        A ready-to-source script or a newline-delimited candidate list

    Raises:
        CompletionPatternMismatch: Script injection failed
        CatalogReadError: The chip catalog is unreadable
        ProbeEnumerationError: Probe enumeration failed
    """
    logger.debug(f"Completion request: {request}")

    if request.kind == CompleteKind.GenerateScript:
        script = get_completion_script(request.shell, request.prog_name, command)
        return inject_dynamic_completions(
            request.shell, request.prog_name, script, verify_syntax=verify_syntax
        )

    buffer = io.StringIO()
    if request.kind == CompleteKind.ChipList:
        list_chips(buffer, request.prefix)
    else:
        list_probes(buffer, request.prefix, request.shell)
    return buffer.getvalue()


def generate_completion(
    request: CompletionRequest,
    out: TextIO,
    command: Optional[click.Command] = None,
    verify_syntax: bool = False,
) -> None:
    """Render ``request`` and write it to ``out``."""
    output = render_completion(request, command=command, verify_syntax=verify_syntax)
    out.write(output)
    out.flush()
