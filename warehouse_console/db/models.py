"""Модели базы данных проекта."""

import datetime
import enum
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime.datetime:
    """Текущее время UTC без часового пояса, в том виде, как его хранит SQLite."""
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


class Category(SQLModel, table=True):
    """Категория товаров. Список задается начальными данными и не меняется."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, max_length=100)


class ProductBase(SQLModel):
    """Общие поля товара."""

    name: str = Field(index=True, max_length=100)
    description: str = ""
    # Свободная метка, а не внешний ключ на Category
    category: str = Field(index=True, max_length=100)
    stock: int = Field(default=0)
    min_stock: int = Field(default=0)
    location: str = ""
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    image: str | None = None


class Product(ProductBase, table=True):
    """
    Модель товара на складе.

    Время хранится в UTC без часового пояса: так его возвращает SQLite.
    """

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime.datetime = Field(default_factory=utcnow, sa_type=DateTime())
    updated_at: datetime.datetime = Field(default_factory=utcnow, sa_type=DateTime())

    @property
    def is_low_stock(self) -> bool:
        """Остаток на уровне порога пополнения или ниже."""
        return self.stock <= self.min_stock


def _require_text(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("поле не может быть пустым")
    return value.strip()


def _require_non_negative(value: int | None) -> int:
    if value is None or value < 0:
        raise ValueError("значение не может быть отрицательным")
    return value


def _require_positive_price(value: Decimal | None) -> Decimal:
    if value is None or value <= 0:
        raise ValueError("цена должна быть больше нуля")
    return value


class ProductCreate(ProductBase):
    """
    Данные формы создания товара.

    Проверка выполняется здесь, поэтому сам реестр при добавлении
    ничего не проверяет.
    """

    @field_validator("name", "category")
    @classmethod
    def check_text(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("stock", "min_stock")
    @classmethod
    def check_quantity(cls, value: int) -> int:
        return _require_non_negative(value)

    @field_validator("price")
    @classmethod
    def check_price(cls, value: Decimal) -> Decimal:
        return _require_positive_price(value)


class ProductPatch(SQLModel):
    """
    Частичное обновление товара.

    Перечисляет ровно те поля, которые разрешено менять. В товар
    переносятся только явно переданные поля.
    """

    name: str | None = None
    description: str | None = None
    category: str | None = None
    stock: int | None = None
    min_stock: int | None = None
    location: str | None = None
    price: Decimal | None = None
    image: str | None = None

    @field_validator("name", "category")
    @classmethod
    def check_text(cls, value: str | None) -> str:
        return _require_text(value)

    @field_validator("description", "location")
    @classmethod
    def check_optional_text(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("значение обязательно")
        return value

    @field_validator("stock", "min_stock")
    @classmethod
    def check_quantity(cls, value: int | None) -> int:
        return _require_non_negative(value)

    @field_validator("price")
    @classmethod
    def check_price(cls, value: Decimal | None) -> Decimal:
        return _require_positive_price(value)

    def changes(self) -> dict[str, Any]:
        """Возвращает только явно заданные поля."""
        return self.model_dump(exclude_unset=True)


class ProductSnapshot(BaseModel):
    """Копия товара на момент добавления в корзину. Только для отображения."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    description: str = ""
    category: str
    stock: int
    min_stock: int
    location: str = ""
    price: Decimal
    image: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class CartItem(BaseModel):
    """Позиция корзины списания."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int
    snapshot: ProductSnapshot


class Withdrawal(SQLModel, table=True):
    """Подтвержденное списание. После создания не изменяется и не удаляется."""

    id: int | None = Field(default=None, primary_key=True)
    items: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    total_items: int
    user_id: int
    user_name: str
    user_section: str
    notes: str | None = None
    created_at: datetime.datetime = Field(default_factory=utcnow, sa_type=DateTime())

    @property
    def line_items(self) -> list[CartItem]:
        """Позиции списания в виде объектов."""
        return [CartItem.model_validate(item) for item in self.items]


class Role(enum.StrEnum):
    """Роль пользователя консоли."""

    ADMIN = "admin"
    USER = "user"


class SessionUser(BaseModel):
    """Текущий пользователь консоли."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: Role
    section: str
