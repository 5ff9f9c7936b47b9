"""
Shell completion for ProbeScope

Generates Bash and Zsh completion scripts whose chip and probe arguments
call back into ``probescope complete`` for live candidates.
"""

from probescope.cli.completions.models import (
    ShellKind,
    CompleteKind,
    CompletionRequest,
    SUPPORTED_SHELLS,
)

from probescope.cli.completions.generator import (
    CompletionGenerator,
    generate_bash_completion,
    generate_zsh_completion,
    get_completion_script,
    get_invocation_name,
)

from probescope.cli.completions.injector import (
    inject_dynamic_completions,
    check_syntax,
)

from probescope.cli.completions.lister import (
    list_chips,
    list_probes,
    format_probe_line,
)

from probescope.cli.completions.dispatcher import (
    generate_completion,
    render_completion,
)

__all__ = [
    # Models
    "ShellKind",
    "CompleteKind",
    "CompletionRequest",
    "SUPPORTED_SHELLS",
    # Generator
    "CompletionGenerator",
    "generate_bash_completion",
    "generate_zsh_completion",
    "get_completion_script",
    "get_invocation_name",
    # Injector
    "inject_dynamic_completions",
    "check_syntax",
    # Candidates
    "list_chips",
    "list_probes",
    "format_probe_line",
    # Dispatcher
    "generate_completion",
    "render_completion",
]
