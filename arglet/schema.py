r"""
Arglet schema: descriptors and the registration builder.

Overview
- Descriptors
  • Option[_T]: named option with up to three spellings: short ("-x"), long
    ("--xx") and unconventional (any other leading-symbol spelling such as
    "-frtti" or "+fb"). An option bound to a boolean destination is a flag.
  • Argument[_T]: positional slot, matched in registration order.
  • Rest[_T]: variadic positional absorbing every leftover positional token.
  • Command: named (possibly multi-word) subcommand with its own options,
    arguments, rest and action.

- Builder
  • Parser: the root schema. option()/argument()/rest() register global
    descriptors and return the parser for chaining; command() returns the new
    Command, which offers the same option()/argument()/rest() methods.
  • parse(): run the engine over an argument vector (see arglet.engine).

- Introspection & representation
  • DescriptorType metaclass provides stable __repr__/__rich_repr__ and exposes
    the fields declared in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- descr: Unset | str | Text, non-empty when provided.
- into: any type hint accepted by arglet.coercion.settable, or a destination.
- option names: non-empty, whitespace-free, no "=", not "-" or "--", and not
  starting with a letter/digit; at most one spelling per kind.
- command name/alias: one or more words separated by single spaces; no word
  may start with "-".

Quick example:
    >>> from arglet import Parser
    >>> parser = Parser("tool").option("-v", "--verbose").argument("FILE", required=True)
    >>> listing = parser.command("l", alias="list").option("--long")
    >>> parser.parse(["list", "--long", "notes.txt"]) is listing
    True
"""
import functools
import logging
import operator
import re
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from . import engine, formatting
from .coercion import Boolean, settable
from .faults import HelpRequested, trigger
from .utils import *

logger = logging.getLogger(__name__)


class DescriptorType(type):
    """
    Metaclass of every schema class.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in registration error messages.
    - Expose the names listed in __introspectable__ as read-only properties
      mirroring the private "_name" fields.
    - Provide stable __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when unset).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the fields shared by every descriptor.

    - descr: Unset becomes None; strings are trimmed and must not be empty.
    - required: coerced to bool (only present on options/arguments/rest).
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if "required" in metadata:
        metadata["required"] = bool(metadata["required"])


def _sanitize_destination(cls, metadata, /):
    """
    Internal: resolve 'into' to a destination through settable().
    """
    try:
        metadata["into"] = settable(metadata["into"])
    except TypeError as exception:
        raise TypeError(f"{cls.__typename__} 'into' cannot be bound: {exception}") from None


def _classify(name, /):
    if len(name) == 2 and name[0] == "-" and name[1] != "-":
        return "short"
    if len(name) > 2 and name.startswith("--") and name[2] != "-":
        return "long"
    return "unconventional"


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate option names and sort them into short/long/unconventional.

    Accepted spellings
    - short: "-" followed by exactly one character other than "-"
    - long: "--" followed by at least one character, the first not being "-"
    - unconventional: anything else starting with a non-alphanumeric symbol,
      e.g. "-frtti", "+fb", "/x"

    Raises
    - TypeError: when no name is given or a name is not a string.
    - ValueError: when a name is malformed or two names share a kind.
    """
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    kinds = {"short": "", "long": "", "unconventional": ""}
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not name:
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif re.search(r"[\s=]", name):
            raise ValueError(f"{cls.__typename__} name {name!r} cannot contain whitespaces or '='")
        elif name in ("-", "--"):
            raise ValueError(f"{cls.__typename__} name {name!r} is reserved")
        elif name[0].isalnum() or name[0] == "_":
            raise ValueError(f"{cls.__typename__} name {name!r} must start with a symbol (e.g. '-' or '+')")
        elif kinds[kind := _classify(name)]:
            raise ValueError(f"{cls.__typename__} cannot have two {kind} names ({kinds[kind]!r} and {name!r})")
        kinds[kind] = name

    del metadata["names"]
    metadata.update(kinds)


def _sanitize_label(cls, metadata, key, /):
    if not isinstance(label := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif isinstance(label, str) and not (label := label.strip()):
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
    metadata[key] = coalesce(label)


def _sanitize_words(cls, metadata, key, /):
    """
    Internal: validate a (possibly multi-word) command spelling.
    """
    if not isinstance(words := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    if isinstance(words, str):
        if not words.strip():
            raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
        if " ".join(words.split()) != words:
            raise ValueError(f"{cls.__typename__} {key!r} words must be separated by single spaces")
        if any(word.startswith("-") for word in words.split()):
            raise ValueError(f"{cls.__typename__} {key!r} words cannot start with '-'")
    metadata[key] = coalesce(words)


class Option[_T](metaclass=DescriptorType):
    """
    Named option bound to a destination.

    The option is a flag when its destination is boolean: it then binds "true"
    on bare presence and accepts grouped short spellings ("-rf") and the
    implicit negation "--no-<long>".

    Properties
    - short, long, unconventional: the registered spellings ("" when absent)
    - names: the non-empty spellings, in short/long/unconventional order
    - into: the destination; value forwards to into.value
    - flag, required, descr, exists
    """

    __introspectable__ = (
        "short",
        "long",
        "unconventional",
        "into",
        "required",
        "descr",
        "exists",
    )
    __displayable__ = (
        "names",
        "into",
        "required",
        "descr",
    )

    def __init__(self, *names, into=bool, required=False, descr=Unset):
        metadata = {
            "names": names,
            "into": into,
            "required": required,
            "descr": descr,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)
        _sanitize_destination(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._exists = False

    @property
    def names(self):
        return tuple(filter(None, (self._short, self._long, self._unconventional)))

    @property
    def flag(self):
        return self._into.flag

    @property
    def value(self):
        return self._into.value

    def display(self, delimiter=", "):
        """
        Human-readable name used in messages and help, e.g. "-a, --all".
        """
        return delimiter.join(self.names)

    def set(self, text, /):
        self._into.set(text)
        self._exists = True


class Argument[_T](metaclass=DescriptorType):
    """
    Positional argument. Anonymous arguments are labelled "ARG".
    """

    __introspectable__ = (
        "name",
        "into",
        "required",
        "descr",
        "exists",
    )
    __default_label__ = "ARG"

    def __init__(self, name=Unset, /, into=str, required=False, descr=Unset):
        metadata = {
            "name": name,
            "into": into,
            "required": required,
            "descr": descr,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_label(type(self), metadata, "name")
        _sanitize_destination(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._exists = False

    @property
    def label(self):
        return self._name or type(self).__default_label__

    @property
    def value(self):
        return self._into.value

    def set(self, text, /):
        self._into.set(text)
        self._exists = True


class Rest[_T](Argument):
    """
    Variadic positional receiving every leftover token, one set() per token.
    Anonymous rests are labelled "REST".
    """
    __default_label__ = "REST"

    def __init__(self, name=Unset, /, into=list[str], required=False, descr=Unset):
        super().__init__(name, into=into, required=required, descr=descr)


class Schema(metaclass=DescriptorType):
    """
    Registration surface shared by Parser (global scope) and Command (local scope).
    """

    def _setup(self):
        self._options = []
        self._arguments = []
        self._remainder = None

    def option(self, *names, into=bool, required=False, descr=Unset):
        """
        Register an option and return self for chaining.

        Accepts either the spellings of a new option or a single pre-built Option.
        """
        if len(names) == 1 and isinstance(names[0], Option):
            option, = names
        else:
            option = Option(*names, into=into, required=required, descr=descr)

        for name in option.names:
            if any(name in other.names for other in self._options):
                raise ValueError(f"{type(self).__typename__} option name {name!r} is already registered")
        self._options.append(option)
        return self

    def argument(self, name=Unset, /, into=str, required=False, descr=Unset):
        """
        Register the next positional argument and return self for chaining.
        """
        argument = name if isinstance(name, Argument) and not isinstance(name, Rest) else Argument(
            name,
            into=into,
            required=required,
            descr=descr
        )
        self._arguments.append(argument)
        return self

    def rest(self, name=Unset, /, into=list[str], required=False, descr=Unset):
        """
        Register the rest argument (at most one per scope) and return self for chaining.
        """
        if self._remainder is not None:
            raise ValueError(f"{type(self).__typename__} already has a rest argument")
        self._remainder = name if isinstance(name, Rest) else Rest(name, into=into, required=required, descr=descr)
        return self

    def _reset(self):
        for descriptor in (*self._options, *self._arguments, *filter(None, [self._remainder])):
            descriptor._exists = False


class Command(Schema):
    """
    Subcommand: a local schema selected by its name or alias.

    Once selected, the command stays active for the rest of the token stream;
    its options shadow global options with the same spelling. Its destination
    (a boolean by default) is set as soon as the command is matched, and its
    action callback runs once its required options validated.
    """

    __introspectable__ = (
        "name",
        "alias",
        "descr",
        "into",
        "callback",
        "options",
        "arguments",
        "remainder",
    )
    __displayable__ = (
        "name",
        "alias",
        "descr",
        "options",
        "arguments",
        "remainder",
    )

    def __init__(self, name, /, alias=Unset, descr=Unset, into=Unset, action=Unset):
        metadata = {
            "name": name,
            "alias": alias,
            "descr": descr,
            "into": coalesce(into, Boolean()),
            "callback": action,
        }
        if name is Unset:
            raise TypeError(f"{type(self).__typename__} must have a name")
        _sanitize_metadata(type(self), metadata)
        _sanitize_words(type(self), metadata, "name")
        _sanitize_words(type(self), metadata, "alias")
        _sanitize_destination(type(self), metadata)

        if metadata["alias"] == metadata["name"]:
            raise ValueError(f"{type(self).__typename__} alias cannot repeat the name")
        if not metadata["into"].flag:
            raise TypeError(f"{type(self).__typename__} 'into' must be a boolean destination")
        if not callable(metadata["callback"]) and metadata["callback"] is not Unset:
            raise TypeError(f"{type(self).__typename__} 'action' must be callable")

        self._setup()
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def spellings(self):
        return tuple(filter(None, (self._name, self._alias)))

    @property
    def value(self):
        return self._into.value

    def display(self, delimiter=", "):
        return delimiter.join(self.spellings)

    def action(self, callback, /):
        """
        Register the action callback; usable as a decorator.
        """
        if not callable(callback):
            raise TypeError("@action() must be applied to a callable")
        self._callback = callback
        return callback

    def select(self):
        self._into.set("true")


class Parser(Schema):
    """
    Root schema and parse entry point.

    Metadata
    - name: program name shown in usage ("CMD" when omitted)
    - descr: program description shown in help
    - command_required: parsing fails with MissingCommandError when no command matched
    - help: optional callback run instead of the default '--help' behaviour

    Runtime flags
    - shell: faults and '--help' print with rich and exit instead of raising
    - fancy: wrap rendered help and faults in a panel
    - colorful: enable styles in rendered help and faults
    """

    __introspectable__ = (
        "name",
        "descr",
        "command_required",
        "options",
        "arguments",
        "remainder",
        "commands",
        "shell",
        "fancy",
        "colorful",
    )
    __displayable__ = (
        "name",
        "descr",
        "command_required",
        "options",
        "arguments",
        "remainder",
        "commands",
    )

    def __init__(
            self,
            name=Unset,
            /,
            descr=Unset,
            *,
            command_required=False,
            help=Unset,
            shell=False,
            fancy=False,
            colorful=False
    ):
        metadata = {
            "name": name,
            "descr": descr,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_label(type(self), metadata, "name")

        self._setup()
        self._name = coalesce(metadata["name"], "CMD")
        self._descr = metadata["descr"]
        self._command_required = bool(command_required)
        self._commands = []
        self._help = Unset
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        if help is not Unset:
            self.help(help)

    def command(self, name, /, alias=Unset, descr=Unset, into=Unset, action=Unset):
        """
        Register a command and return it (not the parser).

        Accepts either the metadata of a new command or a pre-built Command.
        """
        command = name if isinstance(name, Command) else Command(
            name,
            alias=alias,
            descr=descr,
            into=into,
            action=action
        )
        for spelling in command.spellings:
            if any(spelling in other.spellings for other in self._commands):
                raise ValueError(f"{type(self).__typename__} command {spelling!r} is already registered")
        self._commands.append(command)
        return command

    def help(self, callback, /):
        """
        Register the '--help' callback; usable as a decorator.
        """
        if not callable(callback):
            raise TypeError("@help() must be applied to a callable")
        self._help = callback
        return callback

    def find(self, name, /):
        """
        Return the command registered under name or alias; raise KeyError otherwise.
        """
        for command in self._commands:
            if name in command.spellings:
                return command
        raise KeyError(name)

    def format_usage(self, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_usage(self, indentation)

    def format_options(self, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_options(self._options, indentation)

    def format_args(self, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_args(self._arguments, self._remainder, indentation)

    def format_commands(self, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_commands(self._commands, indentation)

    def format_help(self, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_help(self, indentation)

    def format_command_usage(self, name, /, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_command_usage(self, self.find(name), indentation)

    def format_command_args(self, name, /, indentation=formatting.DEFAULT_INDENTATION):
        command = self.find(name)
        return formatting.format_args(command.arguments, command.remainder, indentation)

    def format_command_options(self, name, /, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_options(self.find(name).options, indentation)

    def format_command_help(self, name, /, indentation=formatting.DEFAULT_INDENTATION):
        return formatting.format_command_help(self, self.find(name), indentation)

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this parser's runtime flags (see arglet.faults.trigger).
        """
        trigger(fault, **options, prog=self._name, shell=self._shell, fancy=self._fancy, colorful=self._colorful)

    def _requested_help(self, command):
        """
        Handle a bare '--help' token; returns only when a help callback ran.
        """
        if self._help:
            logger.debug("running help callback %r", self._help)
            self._help()
            return
        if self._shell:
            Console().print(formatting.render_help(self, command))
            sys.exit(0)
        raise HelpRequested(
            formatting.format_help(self) if command is None else formatting.format_command_help(self, command),
            command
        )

    def parse(self, argv=Unset, /):
        """
        Parse an argument vector (program name excluded) into the bound destinations.

        Parameters
        - argv:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as is.

        Returns
        - the active Command, or None when no command matched.

        Raises
        - TypeError: when argv is not Unset/str/Iterable[str].
        - ParserException subclasses (see arglet.faults), unless shell mode is on.
        - HelpRequested: on '--help' without a help callback, unless shell mode is on.
        """
        if argv is Unset:
            tokens = sys.argv[1:]
        elif isinstance(argv, str):
            tokens = shlex.split(argv)
        elif isinstance(argv, Iterable):
            tokens = list(argv)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        return engine.run(self, tokens)


def parse(argv, /, *options):
    """
    One-shot parse of argv against a set of pre-built options.

        >>> verbose = Option("-v", "--verbose")
        >>> parse(["-v"], verbose)
        >>> verbose.value
        True
    """
    parser = Parser()
    for option in options:
        if not isinstance(option, Option):
            raise TypeError("parse() options must be Option instances")
        parser.option(option)
    parser.parse(argv)


__all__ = (
    "Option",
    "Argument",
    "Rest",
    "Command",
    "Parser",
    "parse",
)

del DescriptorType
