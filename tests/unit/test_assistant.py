# =============================================================================
# tests/unit/test_assistant.py
# Unit Tests for the HACCP assistant
# =============================================================================

from dataclasses import replace
from unittest.mock import MagicMock

import openai
import pytest

from haccp_core.ai import (
    ANALYSIS_UNAVAILABLE,
    ASSISTANT_OFFLINE,
    NO_ANALYSIS,
    NO_ANSWER,
    HaccpAssistant,
    compliance_prompt,
)
from haccp_core.utils import CancellationToken


def _client_answering(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    client.chat.completions.create.return_value.choices = [MagicMock(message=message)]
    return client


@pytest.fixture
def ai_settings(remote_settings):
    return replace(remote_settings, openai_api_key="sk-test", openai_model="gpt-4o-mini")


class TestPrompt:

    def test_lists_status_and_values(self, scenario_log):
        prompt = compliance_prompt(scenario_log)

        assert "Date: 2024-06-01" in prompt
        assert "- Frigo Cuisine - Matin (+2°C/+4°C): VALIDE (Valeur: 3.0)" in prompt
        assert "NON FAIT" in prompt
        assert prompt.count("\n- ") == len(scenario_log.items)


class TestAnalyzeCompliance:

    def test_returns_completion_text(self, ai_settings, scenario_log):
        client = _client_answering("  Relevé conforme.  ")
        assistant = HaccpAssistant(ai_settings, client=client)

        assert assistant.analyze_compliance(scenario_log) == "Relevé conforme."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][-1]["content"] == compliance_prompt(scenario_log)

    def test_empty_completion(self, ai_settings, scenario_log):
        assistant = HaccpAssistant(ai_settings, client=_client_answering(None))
        assert assistant.analyze_compliance(scenario_log) == NO_ANALYSIS

    def test_missing_key(self, settings, scenario_log):
        assistant = HaccpAssistant(settings)

        assert not assistant.available
        assert assistant.analyze_compliance(scenario_log) == ANALYSIS_UNAVAILABLE

    def test_openai_error(self, ai_settings, scenario_log):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("quota exceeded")

        assistant = HaccpAssistant(ai_settings, client=client)

        assert assistant.analyze_compliance(scenario_log) == ANALYSIS_UNAVAILABLE

    def test_malformed_response(self, ai_settings, scenario_log):
        client = MagicMock()
        client.chat.completions.create.return_value.choices = []

        assistant = HaccpAssistant(ai_settings, client=client)

        assert assistant.analyze_compliance(scenario_log) == ANALYSIS_UNAVAILABLE

    def test_cancelled_before_request(self, ai_settings, scenario_log):
        client = _client_answering("ok")
        token = CancellationToken()
        token.cancel()

        result = HaccpAssistant(ai_settings, client=client).analyze_compliance(scenario_log, cancel=token)

        assert result == ANALYSIS_UNAVAILABLE
        client.chat.completions.create.assert_not_called()


class TestAnswerQuestion:

    def test_answer(self, ai_settings):
        client = _client_answering("3 jours au maximum.")
        answer = HaccpAssistant(ai_settings, client=client).answer_question("Fond de veau ?")

        assert answer == "3 jours au maximum."
        prompt = client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
        assert "Fond de veau ?" in prompt

    def test_blank_question_is_not_sent(self, ai_settings):
        client = _client_answering("unused")

        assert HaccpAssistant(ai_settings, client=client).answer_question("   ") == NO_ANSWER
        client.chat.completions.create.assert_not_called()

    def test_offline(self, ai_settings):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("timeout")

        assert HaccpAssistant(ai_settings, client=client).answer_question("DLC ?") == ASSISTANT_OFFLINE

    def test_missing_key(self, settings):
        assert HaccpAssistant(settings).answer_question("DLC ?") == ASSISTANT_OFFLINE
