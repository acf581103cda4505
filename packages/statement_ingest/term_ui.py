"""Tiny terminal UI helpers (prompt_toolkit-based).

Used by the CLI when an export's headers match no known bank format: the user
picks which column feeds each canonical field, and the result is a
:class:`~statement_ingest.models.FieldMap` for the custom normalization mode.
Kept apart from the engine so prompts can be tested with a pipe input.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

from .models import FieldMap, validate_field_map

SKIP_SENTINEL = "(none)"

# Header fragments that suggest a column for each field, strongest first.
FIELD_HINTS: dict[str, tuple[str, ...]] = {
    "date": ("posting date", "transaction date", "trans. date", "date"),
    "description": ("description", "name", "payee", "memo"),
    "amount": ("amount",),
    "debit": ("debit", "withdrawal"),
    "credit": ("credit", "deposit"),
    "check_number": ("check", "slip"),
    "reference_number": ("reference", "ref"),
    "category": ("category",),
    "type": ("type",),
}

FIELD_LABELS: dict[str, str] = {
    "date": "Date",
    "description": "Description",
    "amount": "Amount (signed)",
    "debit": "Debit / withdrawal",
    "credit": "Credit / deposit",
    "check_number": "Check number",
    "reference_number": "Reference number",
    "category": "Bank category",
    "type": "Transaction type",
}


def guess_column(headers: Sequence[str], field: str) -> str | None:
    """Best header for ``field`` by exact name, then by substring."""

    hints = FIELD_HINTS.get(field, ())
    lowered = [(h.lower(), h) for h in headers]
    for hint in hints:
        for low, h in lowered:
            if low == hint:
                return h
    for hint in hints:
        for low, h in lowered:
            if hint in low:
                return h
    return None


def _resolve(text: str, headers: Sequence[str]) -> str | None:
    """Exact case-insensitive header match, else a unique prefix match."""

    t = text.strip().lower()
    if not t:
        return None
    for h in headers:
        if h.lower() == t:
            return h
    prefixed = [h for h in headers if h.lower().startswith(t)]
    return prefixed[0] if len(prefixed) == 1 else None


class _ColumnValidator(Validator):
    def __init__(self, headers: Sequence[str], required: bool) -> None:
        self._headers = headers
        self._required = required

    def validate(self, document) -> None:
        text = document.text.strip()
        if not text or text == SKIP_SENTINEL:
            if self._required:
                raise ValidationError(message="This field is required; pick a column.")
            return
        if _resolve(text, self._headers) is None:
            raise ValidationError(message=f"No column named {text!r}.")


def select_column(
    headers: Sequence[str],
    *,
    field: str,
    required: bool = False,
    default: str | None = None,
    session: PromptSession | None = None,
) -> str | None:
    """Ask which header feeds ``field``.

    Returns the chosen header, or ``None`` when an optional field is skipped
    (empty input or the "(none)" option). Esc also returns ``None``.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    words = list(headers) if required else [*headers, SKIP_SENTINEL]
    completer = WordCompleter(words, ignore_case=True, match_middle=True, sentence=True)
    label = FIELD_LABELS.get(field, field)
    message = f"{label} column{'' if required else ' (Enter to skip)'}: "

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    value = sess.prompt(
        message,
        default=default or "",
        completer=completer,
        validator=_ColumnValidator(headers, required),
        validate_while_typing=False,
    )
    if value is None:
        return None
    return _resolve(value, headers)


def prompt_field_map(
    headers: Sequence[str],
    *,
    session: PromptSession | None = None,
    select: Callable[..., str | None] | None = None,
) -> FieldMap | None:
    """Walk the user through a full column mapping.

    Asks for date and description, then either a signed amount column or a
    debit/credit pair, then the optional columns. Returns ``None`` if a
    required field was cancelled.
    """

    ask = select or select_column
    chosen: dict[str, str] = {}

    def _ask(field: str, required: bool) -> bool:
        col = ask(
            headers,
            field=field,
            required=required,
            default=guess_column(headers, field) or "",
            session=session,
        )
        if col:
            chosen[field] = col
            return True
        return not required

    for field in ("date", "description"):
        if not _ask(field, True):
            return None
    if not _ask("amount", False):
        return None
    if "amount" not in chosen:
        for field in ("debit", "credit"):
            if not _ask(field, True):
                return None
    for field in ("check_number", "reference_number", "category", "type"):
        _ask(field, False)

    fm = FieldMap.model_validate(chosen)
    check = validate_field_map(fm)
    if not check.ok:
        raise ValueError("; ".join(check.errors))
    return fm


__all__ = [
    "FIELD_HINTS",
    "SKIP_SENTINEL",
    "guess_column",
    "prompt_field_map",
    "select_column",
]
