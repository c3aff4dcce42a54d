"""
Run Alembic migrations before the app starts.
Deploy start command: python run_migrations.py && uvicorn eduquest.main:app ...
The app also upgrades on startup; running it here surfaces failures before boot.
"""
import sys

from eduquest.main import run_migrations


def run():
    try:
        run_migrations()
    except Exception as e:
        print(f"❌ Migrations failed: {e}")
        return False
    print("✅ Migrations completed")
    return True


if __name__ == "__main__":
    success = run()
    sys.exit(0 if success else 1)
