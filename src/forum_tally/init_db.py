from sqlalchemy import select

from forum_tally.core.settings import settings
from forum_tally.db.session import SessionLocal, create_tables
from forum_tally.models import Category


def init_db() -> int:
    """Create all tables and seed the default categories into an empty table."""
    create_tables()
    with SessionLocal() as db:
        if db.scalars(select(Category.id).limit(1)).first() is not None:
            return 0
        db.add_all(Category(name=name) for name in settings.default_categories)
        db.commit()
    return len(settings.default_categories)


if __name__ == "__main__":
    seeded = init_db()
    print(f"Database initialized ({seeded} categories seeded).")
