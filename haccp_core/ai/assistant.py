# =============================================================================
# haccp_core/ai/assistant.py
# HACCP assistant - compliance summaries and food-safety answers (OpenAI)
# =============================================================================
"""
Advisory text only. Both public methods always return a string: any failure
(missing key, network, empty completion, cancellation) becomes a fixed French
message so the page never has to handle an exception.
"""

from __future__ import annotations
import threading
from typing import List, Optional

import openai

from haccp_core.config import Settings, get_settings
from haccp_core.domain import DailyLog
from haccp_core.errors import AssistantError, HaccpError
from haccp_core.logging import get_logger
from haccp_core.utils import CancellationToken, check_cancelled

logger = get_logger(__name__)

NO_ANALYSIS = "Aucune analyse générée."
ANALYSIS_UNAVAILABLE = "Désolé, l'analyse IA est temporairement indisponible."
NO_ANSWER = "Désolé, je ne peux pas répondre à cette question pour le moment."
ASSISTANT_OFFLINE = "Désolé, le service d'assistance est momentanément hors ligne."

SYSTEM_PROMPT = (
    "Tu es un expert en sécurité alimentaire (HACCP) qui conseille l'équipe "
    "d'un restaurant en France. Réponds en français, de manière concise et professionnelle."
)


def compliance_prompt(log: DailyLog) -> str:
    """Prompt listing every control of the day with its status and value."""
    lines: List[str] = []
    for item in log.items:
        line = f"- {item.label}: {'VALIDE' if item.completed else 'NON FAIT'}"
        if item.value not in (None, ""):
            line += f" (Valeur: {item.value})"
        lines.append(line)

    return (
        "En tant qu'expert en sécurité alimentaire (HACCP), analyse le relevé journalier "
        "suivant d'un restaurant :\n"
        f"Date: {log.date}\n"
        "Contrôles effectués:\n"
        + "\n".join(lines)
        + "\n\nDonne un résumé rapide de la conformité, identifie les risques critiques s'il y en a, "
        "et suggère une action corrective immédiate si nécessaire. Réponds en français de manière "
        "concise et professionnelle."
    )


def question_prompt(question: str) -> str:
    return (
        f"Question sur la sécurité alimentaire en restauration : {question}. "
        "Réponds selon les normes d'hygiène françaises (HACCP)."
    )


class HaccpAssistant:
    """
    Single-shot chat completions, one attempt, bounded by the request timeout.

    Usage:
        assistant = get_assistant()
        st.markdown(assistant.analyze_compliance(log))
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[openai.OpenAI] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None or self.settings.assistant_configured

    def _get_client(self) -> openai.OpenAI:
        if self._client is None:
            if not self.settings.assistant_configured:
                raise AssistantError("OpenAI API key is not configured")
            self._client = openai.OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.request_timeout,
                max_retries=0,
            )
        return self._client

    def _complete(self, prompt: str, max_tokens: int, cancel: Optional[CancellationToken]) -> str:
        check_cancelled(cancel, "assistant request")
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=0.3,
            )
            content = response.choices[0].message.content
        except openai.OpenAIError as e:
            raise AssistantError(f"OpenAI request failed: {e}")
        except (AttributeError, IndexError, TypeError) as e:
            raise AssistantError(f"Unexpected OpenAI response: {e}")
        return (content or "").strip()

    def analyze_compliance(self, log: DailyLog, cancel: Optional[CancellationToken] = None) -> str:
        """Short compliance summary of one daily log."""
        try:
            text = self._complete(compliance_prompt(log), max_tokens=600, cancel=cancel)
        except HaccpError as e:
            logger.error(f"Compliance analysis failed for {log.date}: {e}")
            return ANALYSIS_UNAVAILABLE
        return text or NO_ANALYSIS

    def answer_question(self, question: str, cancel: Optional[CancellationToken] = None) -> str:
        """Answer a free-text food-safety question."""
        question = (question or "").strip()
        if not question:
            return NO_ANSWER
        try:
            text = self._complete(question_prompt(question), max_tokens=800, cancel=cancel)
        except HaccpError as e:
            logger.error(f"Assistant question failed: {e}")
            return ASSISTANT_OFFLINE
        return text or NO_ANSWER


# Singleton accessor
_assistant: Optional[HaccpAssistant] = None
_lock = threading.Lock()


def get_assistant() -> HaccpAssistant:
    """Get the global HaccpAssistant instance."""
    global _assistant
    if _assistant is None:
        with _lock:
            if _assistant is None:
                _assistant = HaccpAssistant()
    return _assistant
