"""
Arglet faults (parse errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse error kind.
- ParserException: base type carrying message + options; knows how to render
  itself with rich in a friendly, lowercased and actionable way.
- HelpRequested: raised (outside shell mode) when '--help' was asked for and
  no help callback was registered. It is a signal, not a failure.
- trigger(): central entry point to surface a fault (raise, or print and exit in shell mode).

Taxonomy
- InvalidOptionError                leading-dash token naming no registered option
- InvalidOptionValueError           option value failed coercion or is missing
  └ InvalidCommandOptionValueError  same, for a command-local option
- InvalidArgValueError              positional/rest value failed coercion
  └ InvalidCommandArgValueError     same, for a command-local argument
- UnexpectedArgError                positional token with no slot left
- MissingOptionError                required option never appeared
  └ MissingCommandOptionError       same, for a command-local option
- MissingArgError                   required positional/rest never appeared
  └ MissingCommandArgError          same, for a command-local argument
- MissingCommandError               a command is required but none matched

Command-scoped kinds subclass the global ones, so catching the general kind
also catches the command kind; catch the specific subclass first when both
need different handling.

Integration
- The engine builds faults with the kind-specific fields (option, value, arg,
  command, reason, input) and hands them to Parser.trigger(fault), which
  injects the runtime flags (shell/fancy/colorful) and calls trigger().
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - options (1111x): INVALID_OPTION, INVALID_OPTION_VALUE, INVALID_COMMAND_OPTION_VALUE
    - arguments (1112x): INVALID_ARG_VALUE, INVALID_COMMAND_ARG_VALUE, UNEXPECTED_ARG
    - requirements (1113x): MISSING_OPTION, MISSING_COMMAND_OPTION, MISSING_ARG,
      MISSING_COMMAND_ARG, MISSING_COMMAND
    """
    # --- option errors ---
    INVALID_OPTION                = 11111
    INVALID_OPTION_VALUE          = 11112
    INVALID_COMMAND_OPTION_VALUE  = 11113

    # --- argument errors ---
    INVALID_ARG_VALUE             = 11121
    INVALID_COMMAND_ARG_VALUE     = 11122
    UNEXPECTED_ARG                = 11123

    # --- requirement errors ---
    MISSING_OPTION                = 11131
    MISSING_COMMAND_OPTION        = 11132
    MISSING_ARG                   = 11133
    MISSING_COMMAND_ARG           = 11134
    MISSING_COMMAND               = 11135

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ParserException(Exception):
    """
    base of every parse error.

    fields
    - message: the one-line, lowercased description (also str(exception)).
    - options: read-only mapping with rendering/context entries (title, code,
      hint, shell, fancy, colorful, prog) and the kind-specific fields.
      kind-specific fields are also reachable as attributes (e.g. error.option).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # only reached for names missing on the instance: fall back to the context fields
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "arglet"), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code else "", styler("code")),
            " | ",
            text(self.options.get("title", "error").title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        parts = [message]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")

        return Group(header, *parts)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, **overrides):
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidOptionError(ParserException): ...
class InvalidOptionValueError(ParserException): ...
class InvalidCommandOptionValueError(InvalidOptionValueError): ...
class InvalidArgValueError(ParserException): ...
class InvalidCommandArgValueError(InvalidArgValueError): ...
class UnexpectedArgError(ParserException): ...
class MissingOptionError(ParserException): ...
class MissingCommandOptionError(MissingOptionError): ...
class MissingArgError(ParserException): ...
class MissingCommandArgError(MissingArgError): ...
class MissingCommandError(ParserException): ...


class HelpRequested(Exception):
    """
    '--help' was given and the parser is neither in shell mode nor has a help callback.

    fields
    - text: the formatted help (whole parser, or the active command's help).
    - command: the active command when '--help' appeared, otherwise None.
    """

    def __init__(self, text, command=None):
        super().__init__("help requested")
        self.text = text
        self.command = command


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParserException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode the fault is rendered with rich on stderr and the process
      exits with status 1; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "ParserException",
    "InvalidOptionError",
    "InvalidOptionValueError",
    "InvalidCommandOptionValueError",
    "InvalidArgValueError",
    "InvalidCommandArgValueError",
    "UnexpectedArgError",
    "MissingOptionError",
    "MissingCommandOptionError",
    "MissingArgError",
    "MissingCommandArgError",
    "MissingCommandError",
    "HelpRequested",
    "FaultCode",
    "trigger",
)
