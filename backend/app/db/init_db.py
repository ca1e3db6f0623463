"""
Database initialization script.
"""
import logging
from app.db.session import SessionLocal, init_db
from app.services.agent_stats_service import recalculate_all_agent_statistics


def rebuild_agent_statistics() -> int:
    """Rebuild every agent's lifetime statistics from the stored trip summaries."""
    db = SessionLocal()
    try:
        count = recalculate_all_agent_statistics(db)
        db.commit()
        return count
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Initializing database...")
    init_db()
    print(f"Refreshed statistics for {rebuild_agent_statistics()} agents")
    print("Database initialized successfully!")
