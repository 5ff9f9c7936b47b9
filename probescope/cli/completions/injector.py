"""
Dynamic completion injection.

Rewrites a baseline completion script so that the chip and probe
arguments call back into ``<prog> complete <shell> <kind> <prefix>``
for their candidates. The rewrite relies on the exact shape of the
generator's output: every substitution is anchored on a narrow pattern
and must match at least once, otherwise the whole injection fails with
CompletionPatternMismatch instead of returning a static script.
"""

import logging
import re
import shutil
import subprocess
from typing import List, Tuple, Union

from probescope.cli.completions.models import ShellKind
from probescope.core.errors import CompletionPatternMismatch

logger = logging.getLogger(__name__)

SYNTAX_CHECK_TIMEOUT = 10.0

ZSH_DYNAMIC_FUNCTIONS = """\
(( $+functions[_{name}_chips_list] )) ||
_{name}_chips_list() {{
    local -a array_of_lines
    array_of_lines=(${{(f)"$({name} complete zsh chip-list "" 2>/dev/null)"}})
    if [ ${{#array_of_lines[@]}} -ne 0 ]; then
        _values 'chips' $array_of_lines
    fi
}}
(( $+functions[_{name}_probe_list] )) ||
_{name}_probe_list() {{
    local -a array_of_lines
    array_of_lines=(${{(f)"$({name} complete zsh probe-list "" 2>/dev/null)"}})
    if [ ${{#array_of_lines[@]}} -ne 0 ]; then
        _values 'probes' $array_of_lines
    else
        _default
    fi
}}

"""


def _literal(text: str) -> str:
    """Escape text for use inside a ``re.sub`` replacement template."""
    return text.replace("\\", "\\\\")


def _substitute(pattern: str, template: str, script: str, what: str, flags: int = 0) -> str:
    """Apply one anchored substitution, requiring at least one match."""
    try:
        regex = re.compile(pattern, flags)
        result, count = regex.subn(template, script)
    except re.error as e:
        raise CompletionPatternMismatch(f"Invalid completion pattern for {what}: {e}") from e

    if count == 0:
        raise CompletionPatternMismatch(
            f"Completion script anchor for {what} not found; "
            f"the generated script has an unexpected shape"
        )
    logger.debug(f"Injected {what} at {count} location(s)")
    return result


def _inject_zsh(name: str, script: str) -> Tuple[str, List[str]]:
    script = _substitute(
        rf'^(_{re.escape(name)} "\$@")$',
        _literal(ZSH_DYNAMIC_FUNCTIONS.format(name=name)) + r"\g<1>",
        script,
        "the top-level zsh completion call",
        re.MULTILINE,
    )
    script = _substitute(
        r":CHIP: '",
        _literal(f":CHIP:_{name}_chips_list'"),
        script,
        "the zsh CHIP argument",
    )
    script = _substitute(
        r":PROBE_SELECTOR: '",
        _literal(f":PROBE_SELECTOR:_{name}_probe_list'"),
        script,
        "the zsh PROBE_SELECTOR argument",
    )
    expected = [
        f"_{name}_chips_list() {{",
        f"_{name}_probe_list() {{",
        f":CHIP:_{name}_chips_list'",
        f":PROBE_SELECTOR:_{name}_probe_list'",
    ]
    return script, expected


def _inject_bash(name: str, script: str) -> Tuple[str, List[str]]:
    for flag, kind in (("chip", "chip-list"), ("probe", "probe-list")):
        script = _substitute(
            rf'(--{flag}\)\n *COMPREPLY=\(\$\()compgen -f( "\$\{{cur\}}"\)\))',
            r"\g<1>" + _literal(f"{name} complete bash {kind}") + r"\g<2>",
            script,
            f"the bash --{flag} option",
        )
    expected = [
        f'COMPREPLY=($({name} complete bash chip-list "${{cur}}"))',
        f'COMPREPLY=($({name} complete bash probe-list "${{cur}}"))',
    ]
    return script, expected


def check_syntax(shell: ShellKind, script: str) -> bool:
    """
    Parse ``script`` with the shell's no-exec mode (``-n``).

    Returns:
        True if checked, False if the shell is not installed

    Raises:
        CompletionPatternMismatch: If the shell reports a syntax error
    """
    binary = shutil.which(shell.value)
    if binary is None:
        logger.debug(f"{shell.value} not found on PATH, skipping syntax check")
        return False

    try:
        proc = subprocess.run(
            [binary, "-n"],
            input=script,
            capture_output=True,
            text=True,
            timeout=SYNTAX_CHECK_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise CompletionPatternMismatch(f"Could not syntax-check the {shell.value} script: {e}") from e

    if proc.returncode != 0:
        raise CompletionPatternMismatch(
            f"Injected {shell.value} completion script is not valid: {proc.stderr.strip()}"
        )
    return True


def inject_dynamic_completions(
    shell: Union[ShellKind, str],
    name: str,
    script: str,
    verify_syntax: bool = False,
) -> str:
    """
    Turn a baseline completion script into one with live chip/probe completion.

    Args:
        shell: Shell the script is written for
        name: Invocation name used for the callbacks
        script: Baseline script from the generator
        verify_syntax: Also run the result through ``<shell> -n``

    Returns:
        The rewritten script

    Raises:
        UnsupportedShellError: If the shell is not bash or zsh
        CompletionPatternMismatch: If an anchor is missing, a pattern does
            not compile or the result fails the syntax check
    """
    if not isinstance(shell, ShellKind):
        shell = ShellKind.parse(shell)

    if shell == ShellKind.ZSH:
        result, expected = _inject_zsh(name, script)
    else:
        result, expected = _inject_bash(name, script)

    missing = [snippet for snippet in expected if snippet not in result]
    if missing:
        raise CompletionPatternMismatch(
            f"Injected {shell.value} script is missing: {', '.join(missing)}"
        )

    if verify_syntax:
        check_syntax(shell, result)

    return result
