"""User-facing (pt-BR) messages for booking failures."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

PROVIDER_UNAVAILABLE = "provider_unavailable"
SHOWER_CAPACITY = "shower_capacity"
CONFLICT = "conflict"
PERMISSION_DENIED = "permission_denied"
VALIDATION = "validation"
UNKNOWN = "unknown"

# First match wins, so the more specific phrases come first.
_BOOKING_ERRORS: Tuple[Tuple[str, Tuple[str, ...], str], ...] = (
    (
        SHOWER_CAPACITY,
        ("shower", "bath capacity", "capacity exceeded", "capacity"),
        "Capacidade de banho esgotada para este horário. Escolha outro horário.",
    ),
    (
        PROVIDER_UNAVAILABLE,
        ("provider not available", "staff not available", "not available"),
        "Profissional não disponível no horário selecionado.",
    ),
    (
        CONFLICT,
        ("conflict", "already booked", "overlap"),
        "Conflito com outro agendamento neste horário.",
    ),
    (
        PERMISSION_DENIED,
        ("permission denied", "not authorized", "unauthorized", "42501"),
        "Você não tem permissão para realizar esta ação.",
    ),
    (
        VALIDATION,
        ("sundays", "invalid", "not found", "violates", "validation"),
        "Dados inválidos - verifique pet, serviço e horário.",
    ),
)

SLOT_NOT_IN_SNAPSHOT = (
    "Este horário não está mais na lista carregada. Atualize os horários e tente novamente."
)
REQUIRED_TICK_UNAVAILABLE = "Horário indisponível para o serviço selecionado."
STALE_SNAPSHOT = "Os horários exibidos estão desatualizados. Atualize e tente novamente."
SUNDAY_CLOSED = "Agendamentos não são permitidos aos domingos."
MISSING_STAFF = "Por favor, selecione pelo menos um profissional."
SLOT_FETCH_FAILED = "Erro ao buscar horários disponíveis."
BOOKING_CREATED = "Agendamento criado com sucesso!"
BOOKING_CREATED_OVERRIDE = "Agendamento criado com override!"


def classify_booking_error(
    message: Optional[str], *, extra: Iterable[Optional[str]] = ()
) -> Tuple[str, str]:
    """Return ``(kind, user_message)`` for a backend error message.

    ``extra`` carries the structured ``details``/``hint``/``code`` fields; they
    are matched the same way as the message. Unknown errors pass the raw
    message through as ``Erro: {message}``.
    """

    haystack = " ".join(part for part in (message, *extra) if part).lower()
    for kind, needles, user_message in _BOOKING_ERRORS:
        if any(needle in haystack for needle in needles):
            return kind, user_message
    return UNKNOWN, f"Erro: {message or 'erro desconhecido'}"


def translate_booking_error(message: Optional[str]) -> str:
    return classify_booking_error(message)[1]
