"""
Tests loading settings from the environment.
"""

from datetime import timedelta

from grouplink.config.settings import Settings


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("GROUPLINK_TENANT_ID", "contoso")
    monkeypatch.setenv("GROUPLINK_CLIENT_ID", "client")
    monkeypatch.setenv("GROUPLINK_CLIENT_SECRET", "secret")
    monkeypatch.setenv("GROUPLINK_BULK_FAILURE_POLICY", "ask")
    monkeypatch.setenv("GROUPLINK_CONNECT_RETRY_DELAY", "PT10S")

    settings = Settings(_env_file=None)

    assert settings.has_credentials
    assert settings.bulk_failure_policy == "ask"
    assert settings.connect_retry_delay == timedelta(seconds=10)
    assert (
        settings.token_url
        == "https://login.microsoftonline.com/contoso/oauth2/v2.0/token"
    )
    assert settings.graph_scope == "https://graph.microsoft.com/.default"


def test_settings_without_credentials(monkeypatch):
    for name in ["TENANT_ID", "CLIENT_ID", "CLIENT_SECRET"]:
        monkeypatch.delenv(f"GROUPLINK_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert not settings.has_credentials
    assert settings.directory_type == "graph"
    assert settings.manual_sentinel == "done"
