import pytest
from pydantic import ValidationError

from chatrelay.config.settings import Settings


def test_defaults_match_service_behaviour():
    settings = Settings(_env_file=None)

    assert settings.start_command == "/start"
    assert settings.max_output_tokens == 100
    assert settings.temperature == 0.7
    assert settings.system_persona == "You are a helpful assistant."
    assert settings.serialize_conversations is True


def test_environment_variables_use_prefix(monkeypatch):
    monkeypatch.setenv("CHATRELAY_TELEGRAM_MODE", "webhook")
    monkeypatch.setenv("CHATRELAY_STORAGE_BACKEND", "memory")

    settings = Settings(_env_file=None)

    assert settings.telegram_mode == "webhook"
    assert settings.storage_backend == "memory"


def test_unknown_provider_is_rejected():
    with pytest.raises(ValidationError, match="Unsupported LLM provider"):
        Settings(_env_file=None, default_llm_provider="mistral")


@pytest.mark.parametrize("command", ["start", "/start now", ""])
def test_start_command_must_be_a_single_slash_command(command):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, start_command=command)


def test_api_key_lookup_supports_aliases():
    settings = Settings(
        _env_file=None, openai_api_key=" ", anthropic_api_key="ak", google_api_key="gk"
    )

    assert settings.get_api_key_for_provider("claude") == "ak"
    assert settings.get_api_key_for_provider("gemini") == "gk"
    assert settings.validate_provider_credentials("anthropic")
    assert not settings.validate_provider_credentials("openai")
