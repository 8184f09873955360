import pytest
from cryptography.fernet import Fernet

from econtract_app.config import load_config, resolve_mode
from econtract_app.security import secure_store


@pytest.mark.parametrize(
    "dsn,mode",
    [
        (None, "demo"),
        ("", "demo"),
        ("   ", "demo"),
        ("demo-mode", "demo"),
        ("postgresql://user:pw@your-cluster.example/db", "demo"),
        ("sqlite:///var/contracts.db", "persistent"),
        ("postgresql://app@db.internal/contracts", "persistent"),
    ],
)
def test_resolve_mode(dsn, mode):
    assert resolve_mode(dsn) == mode


def test_defaults():
    cfg = load_config(env={})
    assert cfg.is_demo
    assert cfg.contracts_dsn is None
    assert cfg.demo_seed is True
    assert cfg.ai_provider == "mock"
    assert cfg.rate_limit_fail_open is True
    assert cfg.ocr_configured is False
    assert cfg.email_configured is False
    assert cfg.expose_error_details is False


def test_persistent_and_integrations():
    cfg = load_config(
        env={
            "CONTRACTS_DSN": "sqlite:///tmp/c.db",
            "DEEPSEEK_API_KEY": "sk-test",
            "AZURE_COMPUTER_VISION_ENDPOINT": "https://vision.example.com/",
            "AZURE_COMPUTER_VISION_KEY": "k",
            "RESEND_API_KEY": "re_x",
            "CONTRACT_DOMAIN": "https://sign.example.com/",
            "RATE_LIMIT_FAIL_OPEN": "false",
            "DEMO_SEED": "0",
        }
    )
    assert cfg.mode == "persistent"
    assert cfg.contracts_dsn == "sqlite:///tmp/c.db"
    assert cfg.ai_provider == "deepseek"
    assert cfg.ocr_endpoint == "https://vision.example.com"
    assert cfg.ocr_configured and cfg.email_configured
    assert cfg.contract_domain == "https://sign.example.com"
    assert cfg.rate_limit_fail_open is False
    assert cfg.demo_seed is False


@pytest.mark.parametrize(
    "env",
    [
        {"AI_PROVIDER": "deepseek"},
        {"AI_PROVIDER": "something-else", "DEEPSEEK_API_KEY": "sk"},
    ],
)
def test_provider_falls_back_to_mock(env):
    assert load_config(env=env).ai_provider == "mock"


def test_explicit_mock_wins_over_key():
    assert load_config(env={"AI_PROVIDER": "mock", "DEEPSEEK_API_KEY": "sk"}).ai_provider == "mock"


def test_cipher_plaintext_outside_prod(tmp_path):
    path = tmp_path / "trail.log"
    secure_store.secure_write(path, "hello")
    assert path.read_bytes() == b"hello\n"


def test_cipher_required_in_prod(monkeypatch):
    monkeypatch.setenv("ECONTRACT_ENV", "prod")
    with pytest.raises(RuntimeError):
        secure_store.get_cipher()


def test_cipher_from_env(monkeypatch, tmp_path):
    key = Fernet.generate_key().decode()
    monkeypatch.setenv(secure_store.KEY_ENV, key)
    path = tmp_path / "trail.log"
    secure_store.secure_write(path, "a")
    secure_store.secure_write(path, "b", append=True)
    assert b"a" not in path.read_bytes().split(b"\n")
    assert secure_store.secure_read_lines(path) == [b"a", b"b"]
