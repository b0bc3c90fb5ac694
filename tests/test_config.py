import pytest
from pydantic import SecretStr

from tgupdater.config import BotSettings, PollingSettings, Settings, WebhookSettings, split_csv
from tgupdater.exceptions.updater import UpdaterSetupError
from tgupdater.metrics import get_token_suffix
from tgupdater.service import build_webhook, start_updater


class TestSettings:
    def test_split_csv(self):
        assert split_csv(" message, callback_query ,,") == ["message", "callback_query"]
        assert split_csv("") == []

    def test_polling_defaults(self, monkeypatch):
        for name in ("POLLING_TIMEOUT", "POLLING_CLEAN", "POLLING_API_ERROR_BACKOFF_SEC"):
            monkeypatch.delenv(name, raising=False)
        polling = PollingSettings()

        assert polling.POLLING_TIMEOUT == 0
        assert polling.POLLING_CLEAN is False
        assert polling.POLLING_API_ERROR_BACKOFF_SEC == 1.0

    def test_allowed_updates_from_env(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_ALLOWED_UPDATES_STR", "message,edited_message")

        assert WebhookSettings().WEBHOOK_ALLOWED_UPDATES == ["message", "edited_message"]

    def test_token_suffix(self):
        assert get_token_suffix("123456:ABCDEF") == "CDEF"
        assert get_token_suffix("") == "unknown"


class TestService:
    def test_build_webhook(self):
        settings = Settings(
            webhook=WebhookSettings(
                WEBHOOK_URL="https://example.com",
                WEBHOOK_SERVE_PATH="hook",
                WEBHOOK_SERVE_PORT=8443,
                WEBHOOK_ALLOWED_UPDATES_STR="message",
                WEBHOOK_SECRET_TOKEN=SecretStr(""),
            )
        )

        webhook = build_webhook(settings)

        assert webhook.url == "https://example.com"
        assert webhook.listen_url == "0.0.0.0:8443"
        assert webhook.allowed_updates == ["message"]
        assert webhook.secret_token is None

    @pytest.mark.asyncio
    async def test_missing_token_aborts_startup(self):
        settings = Settings(bot=BotSettings(BOT_TOKEN=SecretStr("")))

        with pytest.raises(UpdaterSetupError):
            await start_updater(settings)
