from app_config import Settings


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "PAYMENT_CURRENCY", "CORS_ORIGINS", "AUTH_AUTHORIZED_PARTIES", "PORT"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.database_url == "sqlite:///./hotels.db"
    assert settings.payment_currency == "usd"
    assert settings.cors_origins == ["*"]
    assert settings.auth_authorized_parties == []
    assert settings.port == 8000


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://db/hotels")
    monkeypatch.setenv("STRIPE_API_KEY", "sk_test_123")
    monkeypatch.setenv("PAYMENT_CURRENCY", "EUR")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    monkeypatch.setenv("AUTH_JWT_PUBLIC_KEY", "-----BEGIN PUBLIC KEY-----\\nabc\\n-----END PUBLIC KEY-----")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = Settings.from_env()

    assert settings.database_url == "postgresql+psycopg://db/hotels"
    assert settings.stripe_api_key == "sk_test_123"
    assert settings.payment_currency == "eur"
    assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert settings.auth_jwt_public_key == "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----"
    assert settings.log_json is True
