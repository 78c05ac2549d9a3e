import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from walletapi.database.connection import engine
from walletapi.config import settings
from walletapi.models import Base


def init_db():
    """Create all wallet tables"""
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized successfully: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    print(f"Environment: {settings.ENVIRONMENT}")
    init_db()
