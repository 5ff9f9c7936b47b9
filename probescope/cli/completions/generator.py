"""
Shell completion script generator for ProbeScope.

Generates static Bash and Zsh completion scripts from the click command
tree behind the typer application. Every option that takes a value gets
a placeholder completion (filenames for bash, an empty action for zsh);
the injector later turns the chip and probe placeholders into callbacks.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import click

from probescope.cli.completions.models import ShellKind


def get_invocation_name(argv0: str) -> str:
    """
    Name the user invokes the program by: the last path component of ``argv[0]``.

    ``python -m probescope`` reports the package's ``__main__.py``, which
    maps back to ``probescope``.
    """
    name = Path(argv0).name
    if not name or name in ("__main__.py", "__main__"):
        return "probescope"
    return name


def _visible_params(command: click.Command) -> List[click.Parameter]:
    return [p for p in command.params if not getattr(p, "hidden", False)]


# Commands, parameters and types are recognised by their attributes rather
# than by class: typer may build its tree from its own bundled copy of click.

def _is_option(param: click.Parameter) -> bool:
    return getattr(param, "param_type_name", None) == "option"


def _is_argument(param: click.Parameter) -> bool:
    return getattr(param, "param_type_name", None) == "argument"


def _type_name(param: click.Parameter) -> str:
    return getattr(param.type, "name", "") or ""


def _subcommands(command: click.Command) -> List[tuple]:
    commands = getattr(command, "commands", None)
    if commands is None:
        return []
    return [
        (name, sub)
        for name, sub in sorted(commands.items())
        if not getattr(sub, "hidden", False)
    ]


def _help_text(param: click.Parameter) -> str:
    text = getattr(param, "help", None) or ""
    return " ".join(text.split())


def _command_help(command: click.Command) -> str:
    return " ".join(command.get_short_help_str(limit=300).split())


def _choices(param: click.Parameter) -> Optional[List[str]]:
    if _type_name(param) == "choice":
        return [str(getattr(c, "value", c)) for c in param.type.choices]
    return None


def _is_path(param: click.Parameter) -> bool:
    return _type_name(param) in ("path", "filename")


def _metavar(param: click.Parameter) -> str:
    return param.metavar or (param.name or "VALUE").upper()


def _takes_value(param: click.Option) -> bool:
    return not param.is_flag and not getattr(param, "count", False)


def _zsh_escape(text: str) -> str:
    """Escape help text for a single-quoted ``_arguments`` spec."""
    for char, escaped in (("\\", "\\\\"), ("'", "'\\''"), ("[", "\\["), ("]", "\\]"), (":", "\\:")):
        text = text.replace(char, escaped)
    return text


class CompletionGenerator:
    """Generate baseline shell completion scripts for a click command tree."""

    def __init__(self, command: click.Command, name: str):
        """
        Initialize the completion generator.

        Args:
            command: Root click command (``typer.main.get_command(app)``)
            name: Invocation name the script completes
        """
        self.command = command
        self.name = name

    def generate(self, shell: Union[ShellKind, str]) -> str:
        """
        Generate the completion script for ``shell``.

        Raises:
            UnsupportedShellError: If the shell is not bash or zsh
        """
        if not isinstance(shell, ShellKind):
            shell = ShellKind.parse(shell)

        if shell == ShellKind.BASH:
            return self._generate_bash()
        return self._generate_zsh()

    # Bash

    def _bash_ident(self, path: Sequence[str]) -> str:
        return "__".join([self.name, *path])

    def _bash_walk(self, command: click.Command, path: List[str]):
        yield path, command
        for sub_name, sub in _subcommands(command):
            yield from self._bash_walk(sub, path + [sub_name])

    def _bash_value_reply(self, param: click.Option) -> str:
        choices = _choices(param)
        if choices is not None:
            return f'COMPREPLY=($(compgen -W "{" ".join(choices)}" -- "${{cur}}"))'
        return 'COMPREPLY=($(compgen -f "${cur}"))'

    def _bash_arm(self, path: List[str], command: click.Command) -> List[str]:
        words = []
        value_options = []
        for param in _visible_params(command):
            if _is_option(param):
                words.extend(param.opts)
                words.extend(param.secondary_opts)
                if _takes_value(param):
                    value_options.append(param)
        words.append("--help")
        words.extend(name for name, _ in _subcommands(command))

        lines = [
            f"        {self._bash_ident(path)})",
            f'            opts="{" ".join(words)}"',
            f"            if [[ ${{cur}} == -* || ${{COMP_CWORD}} -eq {len(path) + 1} ]] ; then",
            '                COMPREPLY=( $(compgen -W "${opts}" -- "${cur}") )',
            "                return 0",
            "            fi",
            '            case "${prev}" in',
        ]
        for param in value_options:
            for opt in param.opts:
                lines.extend([
                    f"                {opt})",
                    f"                    {self._bash_value_reply(param)}",
                    "                    return 0",
                    "                    ;;",
                ])
        lines.extend([
            "                *)",
            "                    COMPREPLY=()",
            "                    ;;",
            "            esac",
            '            COMPREPLY=( $(compgen -W "${opts}" -- "${cur}") )',
            "            return 0",
            "            ;;",
        ])
        return lines

    def _generate_bash(self) -> str:
        """Generate Bash completion script."""
        fn = f"_{self.name}"
        lines = [
            f"# {self.name} Bash completion",
            "#",
            "# Installation:",
            f"#   echo 'source <({self.name} complete bash script)' >> ~/.bashrc",
            "",
            f"{fn}() {{",
            "    local i cur prev opts cmd",
            "    COMPREPLY=()",
            '    cur="${COMP_WORDS[COMP_CWORD]}"',
            '    prev="${COMP_WORDS[COMP_CWORD-1]}"',
            '    cmd=""',
            '    opts=""',
            "",
            "    for i in ${COMP_WORDS[@]}",
            "    do",
            '        case "${cmd},${i}" in',
            '            ",$1")',
            f'                cmd="{self._bash_ident([])}"',
            "                ;;",
        ]
        for path, command in self._bash_walk(self.command, []):
            for sub_name, _ in _subcommands(command):
                lines.extend([
                    f"            {self._bash_ident(path)},{sub_name})",
                    f'                cmd="{self._bash_ident(path + [sub_name])}"',
                    "                ;;",
                ])
        lines.extend([
            "            *)",
            "                ;;",
            "        esac",
            "    done",
            "",
            '    case "${cmd}" in',
        ])
        for path, command in self._bash_walk(self.command, []):
            lines.extend(self._bash_arm(path, command))
        lines.extend([
            "    esac",
            "}",
            "",
            f"complete -F {fn} -o bashdefault -o default {self.name}",
            "",
        ])
        return "\n".join(lines)

    # Zsh

    def _zsh_action(self, param: click.Parameter) -> str:
        choices = _choices(param)
        if choices is not None:
            return f"({' '.join(choices)})"
        if _is_path(param):
            return "_files"
        return " "

    def _zsh_option_specs(self, param: click.Option) -> List[str]:
        help_text = _zsh_escape(_help_text(param))
        repeat = "*" if param.multiple else ""
        specs = []
        if _takes_value(param):
            value = f":{_metavar(param)}:{self._zsh_action(param)}"
            for opt in param.opts:
                form = "=" if opt.startswith("--") else "+"
                specs.append(f"'{repeat}{opt}{form}[{help_text}]{value}'")
        else:
            for opt in [*param.opts, *param.secondary_opts]:
                specs.append(f"'{repeat}{opt}[{help_text}]'")
        return specs

    def _zsh_argument_spec(self, param: click.Argument) -> str:
        metavar = _metavar(param)
        action = self._zsh_action(param)
        if param.nargs == -1:
            return f"'*::{metavar}:{action}'"
        if param.required:
            return f"':{metavar}:{action}'"
        return f"'::{metavar}:{action}'"

    def _zsh_fn(self, path: Sequence[str]) -> str:
        return "_" + "__".join([self.name, *path])

    def _zsh_arguments(self, command: click.Command, path: List[str]) -> List[str]:
        lines = ['_arguments "${_arguments_options[@]}" \\']
        for param in _visible_params(command):
            if _is_option(param):
                lines.extend(f"{spec} \\" for spec in self._zsh_option_specs(param))
        lines.append("'--help[Show this message and exit.]' \\")
        for param in _visible_params(command):
            if _is_argument(param):
                lines.append(f"{self._zsh_argument_spec(param)} \\")

        subcommands = _subcommands(command)
        if not subcommands:
            lines.append("&& ret=0")
            return lines

        state = "-".join([self.name, *path])
        lines.extend([
            f'":: :{self._zsh_fn(path)}_commands" \\',
            f'"*::: :->{state}" \\',
            "&& ret=0",
            "    case $state in",
            f"    ({state})",
            '        words=($line[1] "${words[@]}")',
            "        (( CURRENT += 1 ))",
            f'        curcontext="${{curcontext%:*:*}}:{state}-command-$line[1]:"',
            "        case $line[1] in",
        ])
        for sub_name, sub in subcommands:
            lines.append(f"            ({sub_name})")
            lines.extend(self._zsh_arguments(sub, path + [sub_name]))
            lines.append(";;")
        lines.extend([
            "        esac",
            "    ;;",
            "esac",
        ])
        return lines

    def _zsh_commands_functions(self, command: click.Command, path: List[str]) -> List[str]:
        subcommands = _subcommands(command)
        if not subcommands:
            return []
        fn = f"{self._zsh_fn(path)}_commands"
        label = " ".join([self.name, *path])
        lines = [
            f"(( $+functions[{fn}] )) ||",
            f"{fn}() {{",
            "    local commands; commands=(",
        ]
        for sub_name, sub in subcommands:
            help_text = _command_help(sub).replace("'", "'\\''")
            lines.append(f"'{sub_name}:{help_text}' \\")
        lines.extend([
            "    )",
            f"    _describe -t commands '{label} commands' commands \"$@\"",
            "}",
        ])
        for sub_name, sub in subcommands:
            lines.extend(self._zsh_commands_functions(sub, path + [sub_name]))
        return lines

    def _generate_zsh(self) -> str:
        """Generate Zsh completion script."""
        fn = f"_{self.name}"
        lines = [
            f"#compdef {self.name}",
            f"# {self.name} Zsh completion",
            "#",
            "# Installation:",
            f"#   {self.name} complete zsh script > ~/.zsh/completions/_{self.name}",
            "",
            "autoload -U is-at-least",
            "",
            f"{fn}() {{",
            "    typeset -A opt_args",
            "    typeset -a _arguments_options",
            "    local ret=1",
            "",
            "    if is-at-least 5.2; then",
            "        _arguments_options=(-s -S -C)",
            "    else",
            "        _arguments_options=(-s -C)",
            "    fi",
            "",
            '    local context curcontext="$curcontext" state line',
        ]
        lines.extend(self._zsh_arguments(self.command, []))
        lines.extend([
            "}",
            "",
        ])
        lines.extend(self._zsh_commands_functions(self.command, []))
        lines.extend([
            "",
            f'{fn} "$@"',
            "",
        ])
        return "\n".join(lines)


def _app_command() -> click.Command:
    import typer

    from probescope.cli.main import app

    return typer.main.get_command(app)


def generate_bash_completion(name: str = "probescope") -> str:
    """Generate the baseline Bash completion script."""
    return CompletionGenerator(_app_command(), name).generate(ShellKind.BASH)


def generate_zsh_completion(name: str = "probescope") -> str:
    """Generate the baseline Zsh completion script."""
    return CompletionGenerator(_app_command(), name).generate(ShellKind.ZSH)


def get_completion_script(
    shell: Union[ShellKind, str],
    name: str,
    command: Optional[click.Command] = None,
) -> str:
    """
    Get the baseline completion script for ``shell``.

    Args:
        shell: Shell type (bash, zsh)
        name: Invocation name the script completes
        command: Command tree to describe; the ProbeScope app when omitted

    Returns:
        Completion script as string
    """
    return CompletionGenerator(command or _app_command(), name).generate(shell)
