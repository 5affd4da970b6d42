"""
Catalog listing view models.

Derived per request from variant rows; never persisted.
"""

from pydantic import Field, model_validator
from typing import Literal, Union
from enum import Enum
from decimal import Decimal

from models.base import BaseSchema
from models.product import ProductResponse, VariantWithProduct


class ListingMode(str, Enum):
    """Overall display mode of a grouped listing page."""
    MIXED = "mixed"
    GROUPED = "grouped"
    INDIVIDUAL = "individual"


class PriceRange(BaseSchema):
    """Lowest and highest variant price in a group."""

    min: Decimal
    max: Decimal

    @model_validator(mode="after")
    def min_not_above_max(self):
        if self.min > self.max:
            raise ValueError("price range min must not exceed max")
        return self


class ProductGroup(BaseSchema):
    """All variants of one product shown as a single card."""

    is_grouped: Literal[True] = True
    product: ProductResponse
    variants: list[VariantWithProduct] = Field(..., min_length=1)
    primary_variant: VariantWithProduct
    price_range: PriceRange


class IndividualItem(VariantWithProduct):
    """One variant shown as its own card."""

    is_grouped: Literal[False] = False


MixedItem = Union[ProductGroup, IndividualItem]


class GroupedPage(BaseSchema):
    """One page of a grouped catalog listing."""

    items: list[MixedItem]
    total: int = Field(..., ge=0, description="Item count before pagination")
    page: int = Field(..., ge=0)
    size: int = Field(..., ge=1)
    display_mode: ListingMode


class VariantPage(BaseSchema):
    """One page of flat variant rows."""

    data: list[VariantWithProduct]
    total: int
    page: int
    size: int
