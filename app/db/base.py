import logging
import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import DATABASE_URL, DB_SLOW_QUERY_THRESHOLD

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)


@event.listens_for(engine, "before_cursor_execute")
def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(engine, "after_cursor_execute")
def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
    total = time.time() - conn.info["query_start_time"].pop(-1)
    if total > DB_SLOW_QUERY_THRESHOLD:
        logger.warning(f"Slow query ({total:.2f}s): {statement[:200]}...")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
