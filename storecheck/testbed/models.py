from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..shape import column, computed


@dataclass
class Info:
    """Identity projection of a record: id, code and name."""

    id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None


@dataclass
class Country:
    id: Optional[int] = column(default=None, identifier=True)
    code: Optional[str] = column(default=None, nullable=False, unique=True, max_size=16)
    name: Optional[str] = column(default=None, nullable=False, unique=True, max_size=64)
    phone_area: Optional[str] = column(default=None, max_size=16)
    postalcode: Optional[str] = column(default=None, max_size=16)
    icon: Optional[str] = column(default=None, max_size=512)
    url: Optional[str] = column(default=None, max_size=512)
    description: Optional[str] = column(default=None, max_size=1024)
    predefined: bool = column(default=False, nullable=False)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None

    @computed
    def info(self) -> Info:
        return Info(id=self.id, code=self.code, name=self.name)


@dataclass
class Category:
    """A named category; names are unique within one entity."""

    id: Optional[int] = column(default=None, identifier=True)
    entity: Optional[str] = column(default=None, nullable=False, max_size=64)
    name: Optional[str] = column(default=None, nullable=False, unique=True, respect_to=("entity",), max_size=64)
    description: Optional[str] = column(default=None, max_size=1024)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None


@dataclass
class Province:
    """A province of a country; names are unique within one country."""

    id: Optional[int] = column(default=None, identifier=True)
    country: Optional[Info] = column(default=None, nullable=False, references=Country)
    code: Optional[str] = column(default=None, max_size=16)
    name: Optional[str] = column(default=None, nullable=False, unique=True, respect_to=("country",), max_size=64)
    postalcode: Optional[str] = column(default=None, max_size=16)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None
