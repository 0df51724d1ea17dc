"""
models/option.py
----------------
Global filter vocabularies used to validate AI-generated segment filters.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from forge.db.base import Base


class OptionIndustry(Base):
    __tablename__ = "option_industries"

    industry_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class OptionCompanySize(Base):
    __tablename__ = "option_company_sizes"

    company_size_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    value: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
