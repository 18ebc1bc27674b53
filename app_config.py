import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    """
    Process configuration. Built once at bootstrap and passed to every adapter
    that needs it; nothing else reads the environment.
    """

    database_url: str = "sqlite:///./hotels.db"

    # Stripe
    stripe_api_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    payment_currency: str = "usd"

    # Where the browser is sent after checkout when the request carries no origin
    frontend_url: str = "http://localhost:5173"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Identity provider session tokens
    auth_jwt_public_key: Optional[str] = None
    auth_jwt_issuer: Optional[str] = None
    auth_authorized_parties: List[str] = field(default_factory=list)

    # Search / chat
    google_api_key: Optional[str] = None
    chat_model: str = "gemini-2.5-flash"
    embedding_model: str = "models/text-embedding-004"
    vector_store_dir: str = "./chroma_db"
    vector_collection: str = "hotel_vectors"

    log_level: str = "INFO"
    log_json: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        # Make sure you have a .env file with STRIPE_API_KEY, STRIPE_WEBHOOK_SECRET, ...
        load_dotenv()
        public_key = os.getenv("AUTH_JWT_PUBLIC_KEY")
        if public_key:
            # PEM keys are usually stored on one line with literal \n
            public_key = public_key.replace("\\n", "\n")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            stripe_api_key=os.getenv("STRIPE_API_KEY"),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            payment_currency=os.getenv("PAYMENT_CURRENCY", cls.payment_currency).lower(),
            frontend_url=os.getenv("FRONTEND_URL", cls.frontend_url),
            cors_origins=_split(os.getenv("CORS_ORIGINS")) or ["*"],
            auth_jwt_public_key=public_key,
            auth_jwt_issuer=os.getenv("AUTH_JWT_ISSUER"),
            auth_authorized_parties=_split(os.getenv("AUTH_AUTHORIZED_PARTIES")),
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            chat_model=os.getenv("CHAT_MODEL", cls.chat_model),
            embedding_model=os.getenv("EMBEDDING_MODEL", cls.embedding_model),
            vector_store_dir=os.getenv("VECTOR_STORE_DIR", cls.vector_store_dir),
            vector_collection=os.getenv("VECTOR_COLLECTION", cls.vector_collection),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            log_json=os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
        )
