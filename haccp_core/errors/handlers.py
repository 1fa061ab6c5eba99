# =============================================================================
# haccp_core/errors/handlers.py
# Turning register errors into log lines and French messages on the page
# =============================================================================

from __future__ import annotations
import traceback
from typing import Dict, Optional

import streamlit as st

from haccp_core.logging import get_logger
from .exceptions import ErrorKind, HaccpError, error_kind_of

logger = get_logger(__name__)

USER_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.REMOTE_UNCONFIGURED: "Supabase n'est pas configuré : données enregistrées sur cet appareil uniquement.",
    ErrorKind.REMOTE_UNAVAILABLE: "Connexion au serveur impossible : données enregistrées sur cet appareil.",
    ErrorKind.REMOTE_SCHEMA: "Table manquante sur Supabase. Lancez scripts/check_supabase_schema.py.",
    ErrorKind.MALFORMED_RESPONSE: "Réponse inattendue du serveur.",
    ErrorKind.CANCELLED: "Opération annulée.",
    ErrorKind.AI_UNAVAILABLE: "Assistant indisponible pour le moment.",
}

# Degraded but still working: shown as a warning, not an error
SOFT_KINDS = (ErrorKind.REMOTE_UNCONFIGURED, ErrorKind.REMOTE_UNAVAILABLE, ErrorKind.CANCELLED)


def user_message_for(error: BaseException) -> str:
    """French text for the page. Input and report errors carry their own message."""
    kind = error_kind_of(error)
    if kind in USER_MESSAGES:
        return USER_MESSAGES[kind]
    if isinstance(error, HaccpError):
        return error.message
    return str(error) or error.__class__.__name__


def handle_error(
    error: BaseException,
    show_user_message: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Log ``error`` and, unless told otherwise, show it on the current page.

    Unexpected exceptions are logged with their traceback; register errors
    only with their code and details.
    """
    kind = error_kind_of(error)
    message = user_message or user_message_for(error)

    if isinstance(error, HaccpError):
        logger.warning(f"[{error.code}] {error.message}", extra={"details": error.details})
        details = error.to_dict()
        recoverable = error.recoverable
    else:
        logger.error(f"Unexpected {error.__class__.__name__}: {error}", exc_info=error)
        details = {"traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__))}
        recoverable = True

    if not show_user_message:
        return
    if kind in SOFT_KINDS:
        st.warning(message)
    elif recoverable:
        st.error(f"Erreur : {message}")
    else:
        st.error(f"Erreur critique : {message}. Contactez le responsable.")

    if st.session_state.get("debug_mode", False):
        with st.expander("Détails de l'erreur", expanded=False):
            st.json(details)


class ErrorContext:
    """
    Run a block of page code; if it raises, log and show the error instead
    of letting Streamlit print a stack trace.

        with ErrorContext("Mise à jour des stocks"):
            outcome = get_stock_service().produce_recipe(recipe)

    With ``recoverable=False`` the exception is re-raised after being shown.
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            return False
        self.error = exc_val
        if isinstance(exc_val, HaccpError):
            handle_error(exc_val)
        else:
            handle_error(exc_val, user_message=f"Erreur pendant : {self.operation}")
        return self.recoverable
