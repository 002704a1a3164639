"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables and that
the grouped provider configurations are built from them.
"""

from pathlib import Path

import pytest

from matlinks.server.core.config import CORSConfig, EmailConfig, Settings, StripeConfig, SupabaseConfig


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parent.parent.parent.parent.parent / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


class TestSettingsBinding:
    def test_env_example_documents_every_setting(self, env_example_vars: dict[str, str]):
        aliases = {field.alias for field in Settings.model_fields.values() if field.alias}
        # CORS lists are optional and documented separately
        documented = aliases - {"CORS_ORIGINS", "CORS_ALLOW_CREDENTIALS", "CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS"}

        assert documented <= set(env_example_vars)

    def test_server_fields(self, monkeypatch):
        monkeypatch.setenv("MATLINKS_SERVER_HOST", "127.0.0.1")
        monkeypatch.setenv("MATLINKS_SERVER_PORT", "9000")
        monkeypatch.setenv("MATLINKS_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("APP_URL", "https://gym.example.com")
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        settings = Settings(_env_file=None)

        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 9000
        assert settings.log_level == "DEBUG"
        assert settings.app_url == "https://gym.example.com"
        assert settings.cron_secret == "s3cret"

    def test_database_url_binding(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/gym")

        assert Settings(_env_file=None).database_url == "postgresql://u:p@db:5432/gym"

    def test_defaults(self, monkeypatch):
        for key in ("CRON_SECRET", "STRIPE_SECRET_KEY", "EMAIL_TRANSPORT", "STRIPE_CURRENCY"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings(_env_file=None)

        assert settings.cron_secret is None
        assert settings.stripe.secret_key is None
        assert settings.stripe.currency == "usd"
        assert settings.email.transport == "log"


class TestGroupedConfigs:
    def test_stripe_group(self, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_123")
        monkeypatch.setenv("STRIPE_CURRENCY", "eur")

        stripe_config = Settings(_env_file=None).stripe

        assert isinstance(stripe_config, StripeConfig)
        assert stripe_config.secret_key == "sk_test_123"
        assert stripe_config.webhook_secret == "whsec_123"
        assert stripe_config.currency == "eur"

    def test_supabase_group(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")

        supabase_config = Settings(_env_file=None).supabase

        assert isinstance(supabase_config, SupabaseConfig)
        assert supabase_config.url == "https://abc.supabase.co"
        assert supabase_config.anon_key == "anon"
        assert supabase_config.service_role_key == "service"

    def test_email_group(self, monkeypatch):
        monkeypatch.setenv("EMAIL_TRANSPORT", "http")
        monkeypatch.setenv("EMAIL_API_URL", "https://mail.example.com/send")

        email_config = Settings(_env_file=None).email

        assert isinstance(email_config, EmailConfig)
        assert email_config.transport == "http"
        assert email_config.api_url == "https://mail.example.com/send"

    def test_cors_group_parses_json_lists(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://gym.example.com"]')
        monkeypatch.setenv("CORS_ALLOW_CREDENTIALS", "false")

        cors_config = Settings(_env_file=None).cors

        assert isinstance(cors_config, CORSConfig)
        assert cors_config.origins == ["https://gym.example.com"]
        assert cors_config.allow_credentials is False
        assert cors_config.allow_methods == ["*"]

    def test_configs_accept_field_names(self):
        config = StripeConfig(secret_key="sk_test_x", currency="gbp")

        assert config.secret_key == "sk_test_x"
        assert config.currency == "gbp"
