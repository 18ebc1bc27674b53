import uvicorn

from api.app import create_app
from app_config import Settings
from app_logging import configure_logging
from hotel_search import build_hotel_search
from identity_gate import JwtIdentityGate, StaticIdentityGate
from payments.gateway import StripeGateway
from persistence.db import init_db, make_engine, make_session_factory


def build_app(settings: Settings):
    configure_logging(settings.log_level, settings.log_json)

    engine = make_engine(settings.database_url)
    # initialize DB (creates tables)
    init_db(engine)

    if settings.auth_jwt_public_key:
        identity_gate = JwtIdentityGate(
            settings.auth_jwt_public_key,
            issuer=settings.auth_jwt_issuer,
            authorized_parties=settings.auth_authorized_parties,
        )
    else:
        # no key configured: every protected route answers 401
        identity_gate = StaticIdentityGate()

    return create_app(
        settings,
        session_factory=make_session_factory(engine),
        gateway=StripeGateway.from_settings(settings),
        identity_gate=identity_gate,
        search=build_hotel_search(settings),
    )


settings = Settings.from_env()
app = build_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
