"""Tiny terminal UI helpers (prompt_toolkit-based).

These are the interactive pieces of the CLI: a completion-backed picker for
choosing among loaded records (an imprest, an assignee, a status) and a yes/no
confirmation. They take an optional ``PromptSession`` so tests can drive them
with pipe input.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator


def _session_for(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def select_option(
    labels: Sequence[str] | Iterable[str],
    *,
    default: str = "",
    message: str = "Choose (Tab to complete, Esc to cancel): ",
    session: PromptSession | None = None,
) -> str | None:
    """Prompt for one of ``labels``; matching is case-insensitive.

    Returns the canonical label, or ``None`` when canceled via Esc or Ctrl+C.
    Empty input accepts ``default`` when one is given.
    """

    words = list(labels)
    canonical = {w.lower(): w for w in words}

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    class _OptionValidator(Validator):
        def validate(self, document) -> None:
            text = document.text.strip()
            if not text and default:
                return
            if text.lower() not in canonical:
                raise ValidationError(message="Pick one of the listed options.")

    completer = WordCompleter(words, ignore_case=True, match_middle=True, sentence=True)
    sess = _session_for(session, kb)
    value = sess.prompt(
        message,
        default=default,
        completer=completer,
        validator=_OptionValidator(),
        validate_while_typing=False,
    )
    if value is None:
        return None
    text = value.strip()
    if not text:
        return default or None
    return canonical.get(text.lower(), text)


def confirm(
    message: str,
    *,
    session: PromptSession | None = None,
) -> bool:
    """Ask a yes/no question; anything but ``y``/``yes`` means no."""

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="")

    sess = _session_for(session, kb)
    answer = sess.prompt(f"{message} [y/N]: ")
    return (answer or "").strip().lower() in {"y", "yes"}


__all__ = ["confirm", "select_option"]
