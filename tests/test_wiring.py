from pagebot.core.config import settings
from pagebot.infrastructure.messenger.mock_platform import MockMessengerPlatform
from pagebot.infrastructure.sms.mock_sms import MockSmsGateway
from pagebot.infrastructure.store.json_config_store import JsonConfigStore
from pagebot.wiring import dependencies


def _clear_caches():
    for name in ("get_config_store", "get_message_platform", "get_sms_gateway"):
        getattr(dependencies, name).cache_clear()


def test_local_env_uses_mock_adapters(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "SEMAPHORE_API_KEY", None)
    monkeypatch.setattr(settings, "SHEET_ID", None)
    monkeypatch.setattr(settings, "LOCAL_CONFIG_PATH", str(tmp_path / "pagebot.json"))
    monkeypatch.setattr(settings, "LOCAL_DATA_DIR", str(tmp_path))
    _clear_caches()
    try:
        assert isinstance(dependencies.get_message_platform(), MockMessengerPlatform)
        assert isinstance(dependencies.get_sms_gateway(), MockSmsGateway)
        assert isinstance(dependencies.get_config_store(), JsonConfigStore)
    finally:
        _clear_caches()


def test_prod_without_sms_key_disables_sms(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "prod")
    monkeypatch.setattr(settings, "SEMAPHORE_API_KEY", None)
    _clear_caches()
    try:
        assert dependencies.get_sms_gateway() is None
    finally:
        _clear_caches()
