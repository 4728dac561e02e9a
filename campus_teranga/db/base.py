# campus_teranga/db/base.py
# Общая declarative база для SQLAlchemy. Модели импортируют Base отсюда,
# сам модуль модели не импортирует (иначе циклические импорты).

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# Явные имена индексов и ограничений: alembic генерирует стабильные миграции
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
