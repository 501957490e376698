from __future__ import annotations
import argparse, shutil, os, sys
from typing import Dict, List

_TERM_WIDTH = shutil.get_terminal_size((100, 20)).columns

_ANSI_RESET = "\033[0m"
_ANSI_BOLD = "\033[1m"
_ANSI_CYAN = "\033[36m"
_ANSI_ORANGE = "\033[33m"


def _supports_color(stream=None) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return (stream or sys.stdout).isatty()


def _is_subparsers_action(action: argparse.Action) -> bool:
    """True for a subparsers action: a mapping of names -> ArgumentParser instances."""
    choices = getattr(action, "choices", None)
    if not isinstance(choices, dict) or not choices:
        return False
    return all(isinstance(p, argparse.ArgumentParser) for p in choices.values())


def _choice_helps(action: argparse.Action) -> Dict[str, str]:
    helps = {a.dest: (a.help or "") for a in getattr(action, "_choices_actions", [])}
    if not helps:
        for name, sub in action.choices.items():
            helps[name] = sub.description or ""
    return helps


class EnhancedHelpFormatter(argparse.HelpFormatter):
    """Wider help output for the top-level parser."""

    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=32, width=_TERM_WIDTH)


class CommandGroupHelpFormatter(EnhancedHelpFormatter):
    """
    Renders subparsers ("group" / "Action" choices) as a two-column table
    with right-justified, optionally coloured names.
    """

    def _format_action(self, action: argparse.Action) -> str:
        if getattr(action, "option_strings", None) and any(s in ("-h", "--help") for s in action.option_strings):
            return ""
        if not _is_subparsers_action(action):
            return super()._format_action(action)

        helps = _choice_helps(action)
        if not helps:
            return ""
        names = sorted(helps)
        name_w = max(len(n) for n in names)
        label = (getattr(action, "metavar", None) or getattr(action, "dest", "") or "command")
        color = _ANSI_ORANGE if label.lower() == "group" else _ANSI_CYAN

        out_lines: List[str] = ["", f"  {label.capitalize().rjust(name_w)}  Description",
                                f"  {'-' * name_w}  -----------"]
        for n in names:
            pad = " " * (name_w - len(n))
            shown = f"{_ANSI_BOLD}{color}{n}{_ANSI_RESET}" if _supports_color() else n
            wrapped = self._fill_text(helps[n], width=_TERM_WIDTH - (name_w + 4), indent="").splitlines() or [""]
            out_lines.append(f"  {pad}{shown}  {wrapped[0]}")
            out_lines.extend(f"  {' ' * name_w}  {cont}" for cont in wrapped[1:])
        out_lines.append("")
        return "\n".join(out_lines)


class MainHelpFormatter(CommandGroupHelpFormatter):
    """Top-level parser formatter."""


ActionFirstHelpFormatter = CommandGroupHelpFormatter


class CustomArgumentParser(argparse.ArgumentParser):
    """
    ArgumentParser that prints the command's help before reporting an error.
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("formatter_class", EnhancedHelpFormatter)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> None:
        self.print_help(sys.stderr)
        self.exit(2, f"Error: {message}\n")


class ActionParser(CustomArgumentParser):
    """Subparser class for individual actions; keeps the Action table styled."""

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("formatter_class", CommandGroupHelpFormatter)
        super().__init__(*args, **kwargs)

    def add_subparsers(self, **kwargs):
        kwargs.setdefault("parser_class", ActionParser)
        return super().add_subparsers(**kwargs)


class CommandsAction(argparse.Action):
    """
    argparse Action: --commands -> print the group/action tree and exit(0).
    """

    def __init__(self, option_strings, dest, nargs=0, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=nargs, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        use_color = _supports_color()
        cyan = "\033[96m" if use_color else ""
        orange = _ANSI_ORANGE if use_color else ""
        reset = _ANSI_RESET if use_color else ""

        prog = parser.prog.split()[0]
        top = next((a for a in parser._actions if _is_subparsers_action(a)), None)
        if top is None:
            sys.stdout.write(f"{prog}\n")
            parser.exit(0)

        group_help = _choice_helps(top)
        groups = sorted(top.choices.items())
        tree = [prog]
        for gi, (gname, gparser) in enumerate(groups):
            last_g = gi == len(groups) - 1
            gpfx = "└── " if last_g else "├── "
            tree.append(f"{gpfx}{cyan}{gname}{reset}{' ' * max(0, 30 - len(gpfx + gname))}  ({group_help.get(gname, '')})")
            act = next((a for a in gparser._actions if _is_subparsers_action(a)), None)
            if act is None:
                continue
            action_help = _choice_helps(act)
            actions = sorted(act.choices)
            for ai, aname in enumerate(actions):
                apfx = ("    " if last_g else "│   ") + ("└── " if ai == len(actions) - 1 else "├── ")
                line = f"{apfx}{orange}{aname}{reset}"
                if action_help.get(aname):
                    line += f"{' ' * max(0, 30 - len(apfx + aname))}  ({action_help[aname]})"
                tree.append(line)

        sys.stdout.write("\n".join(tree) + "\n")
        parser.exit(0)
