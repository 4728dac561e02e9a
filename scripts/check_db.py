# scripts/check_db.py
# Проверяет подключение к DATABASE_URL и наличие таблиц приложения
from sqlalchemy import inspect, text

from campus_teranga.core.config import settings
from campus_teranga.db.session import build_engine

EXPECTED_TABLES = ("users", "admin_actions")


def main():
    url = settings.DATABASE_URL
    print('Trying to connect to:', url.split('@')[-1])
    engine = build_engine(url)
    try:
        with engine.connect() as conn:
            print('Connection OK, SELECT 1 ->', conn.execute(text("SELECT 1")).scalar())
            tables = set(inspect(conn).get_table_names())
        for name in EXPECTED_TABLES:
            print(f"  {name}: {'ok' if name in tables else 'MISSING (run alembic upgrade head)'}")
    except Exception as e:
        print('Connection failed:', e)
    finally:
        engine.dispose()


if __name__ == '__main__':
    main()
