from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_ledger_engine(db_connection_uri: str) -> Engine:
    if db_connection_uri.startswith("sqlite") and ":memory:" in db_connection_uri:
        # One shared connection, otherwise every pooled connection sees its own empty database
        return create_engine(
            db_connection_uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_connection_uri)


def create_session_factory(engine: Engine) -> sessionmaker:
    # Rows handed out by views stay readable after their session commits
    return sessionmaker(bind=engine, expire_on_commit=False)
