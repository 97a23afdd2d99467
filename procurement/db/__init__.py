from procurement.db.session import SessionLocal, build_engine, engine, get_db

__all__ = ["SessionLocal", "build_engine", "engine", "get_db"]
