"""
Arglet token classifier.

The matcher decides what a single token means against the registered schema
without binding anything: the engine acts on the returned Match.

Resolution order (first hit wins)
1. "--" (first occurrence only)          → SEPARATOR
2. a registered spelling, exactly        → EXACT (value from lookahead) or EMPTY
3. "--help" when not registered          → HELP
4. "<registered spelling>=<value>"       → ASSIGNMENT
5. "--no-<long>" for a flag "--<long>"   → NEGATION
6. "-<short><more>" for a registered short:
   • flag, every letter a flag short     → GROUPED
   • flag, rest is a boolean literal     → INLINE
   • non-flag                            → INLINE (rest is the value)
7. any other token starting with "-", or with a registered long/unconventional
   spelling                              → INVALID
8. command spelling (no active command)  → COMMAND, resolved by the engine for
   POSITIONAL tokens and for INVALID tokens not starting with "-"
9. anything else                         → POSITIONAL

Option lookups search the active command's options first and then the global
ones, so command-local spellings shadow global spellings.
"""
import enum
from typing import NamedTuple

from .coercion import is_boolean_literal


class Kind(enum.Enum):
    SEPARATOR = "separator"
    EXACT = "exact"
    EMPTY = "empty"
    HELP = "help"
    ASSIGNMENT = "assignment"
    NEGATION = "negation"
    GROUPED = "grouped"
    INLINE = "inline"
    INVALID = "invalid"
    COMMAND = "command"
    POSITIONAL = "positional"


class Binding(NamedTuple):
    option: object
    local: bool


class Match(NamedTuple):
    """
    Outcome of classifying one token.

    - kind: the Kind of the token
    - input: the option spelling as written (e.g. "-s" for "-s=1"), or the token
    - value: text to bind (None when nothing is bound)
    - bindings: options receiving the value (several for GROUPED)
    - consumed: number of extra tokens used (lookahead value, multi-word command)
    - command: the matched command for COMMAND
    """
    kind: Kind
    input: str
    value: str | None = None
    bindings: tuple = ()
    consumed: int = 0
    command: object = None


class Scope:
    """
    Option namespace visible while parsing: the active command's options
    (when one is active) in front of the parser's global options.
    """

    def __init__(self, parser, command=None):
        self.parser = parser
        self.command = command

    def bindings(self):
        if self.command is not None:
            for option in self.command.options:
                yield Binding(option, True)
        for option in self.parser.options:
            yield Binding(option, False)

    def lookup(self, name, /, kind=None):
        """
        Binding of the option spelled exactly name (optionally restricted to one
        spelling kind: "short", "long" or "unconventional"), or None.
        """
        for binding in self.bindings():
            if kind is None and name in binding.option.names:
                return binding
            if kind is not None and getattr(binding.option, kind) == name:
                return binding
        return None

    def prefixed(self, token, /):
        """
        True when token starts with a registered long or unconventional spelling.
        """
        for binding in self.bindings():
            for name in (binding.option.long, binding.option.unconventional):
                if name and token.startswith(name):
                    return True
        return False


def classify(scope, token, lookahead=None):
    """
    Classify an option-position token (the stream is not in args-only mode).

    Parameters
    - scope: the current Scope
    - token: the token to classify
    - lookahead: the next token, or None at the end of the stream
    """
    if token == "--":
        return Match(Kind.SEPARATOR, token)

    if binding := scope.lookup(token):
        if binding.option.flag:
            if lookahead is not None and is_boolean_literal(lookahead):
                return Match(Kind.EXACT, token, lookahead, (binding,), consumed=1)
            return Match(Kind.EXACT, token, "true", (binding,))
        if lookahead is not None and not lookahead.startswith("-"):
            return Match(Kind.EXACT, token, lookahead, (binding,), consumed=1)
        return Match(Kind.EMPTY, token, "", (binding,))

    if token == "--help":
        return Match(Kind.HELP, token)

    if "=" in token:
        name, _, value = token.partition("=")
        if binding := scope.lookup(name):
            return Match(Kind.ASSIGNMENT, name, value, (binding,))

    if token.startswith("--no-"):
        binding = scope.lookup("--" + token[5:], "long")
        if binding and binding.option.flag:
            return Match(Kind.NEGATION, token, "false", (binding,))
        return Match(Kind.INVALID, token)

    if len(token) > 2 and token[0] == "-" and (binding := scope.lookup(token[:2], "short")):
        if not binding.option.flag:
            return Match(Kind.INLINE, token[:2], token[2:], (binding,))
        group = tuple(scope.lookup("-" + letter, "short") for letter in token[1:])
        if all(member and member.option.flag for member in group):
            return Match(Kind.GROUPED, token, "true", group)
        if is_boolean_literal(token[2:]):
            return Match(Kind.INLINE, token[:2], token[2:], (binding,))
        return Match(Kind.INVALID, token)

    if token.startswith("-") or scope.prefixed(token):
        return Match(Kind.INVALID, token)

    return Match(Kind.POSITIONAL, token)


def find_command(commands, tokens, index, /):
    """
    Match a command spelling starting at tokens[index].

    Multi-word spellings must be reconstructed exactly by consecutive tokens,
    none of which may start with "-". The first registered command whose name
    or alias matches wins.

    Returns
    - (command, consumed) where consumed counts the extra tokens used, or None.
    """
    for command in commands:
        for spelling in command.spellings:
            words = spelling.split(" ")
            candidate = tokens[index:index + len(words)]
            if candidate == words and not any(word.startswith("-") for word in candidate):
                return command, len(words) - 1
    return None


__all__ = (
    "Kind",
    "Binding",
    "Match",
    "Scope",
    "classify",
    "find_command",
)
