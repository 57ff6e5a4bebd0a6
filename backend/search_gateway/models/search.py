# /search_gateway/models/search.py

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

# Request-scoped argument models. Field aliases keep the camelCase names
# storefront callers already send; everything is immutable once built.


class SimulationBehavior(str, Enum):
    DEFAULT = "default"
    SKIP = "skip"


class FacetsBehavior(str, Enum):
    STATIC = "Static"
    DYNAMIC = "Dynamic"


class SearchArgs(BaseModel):
    query: Optional[str] = None
    category: Optional[str] = None
    specification_filters: Optional[List[str]] = Field(default=None, alias="specificationFilters")
    price_range: Optional[str] = Field(default=None, alias="priceRange")
    collection: Optional[str] = None
    sales_channel: Optional[str] = Field(default=None, alias="salesChannel")
    order_by: Optional[str] = Field(default=None, alias="orderBy")
    # Inclusive, zero-based window. An explicit null drops the clause.
    from_: Optional[int] = Field(default=0, alias="from")
    to: Optional[int] = 9
    map: Optional[str] = None
    hide_unavailable_items: bool = Field(default=False, alias="hideUnavailableItems")
    simulation_behavior: SimulationBehavior = Field(default=SimulationBehavior.DEFAULT, alias="simulationBehavior")

    class Config:
        frozen = True
        populate_by_name = True


class FacetsArgs(BaseModel):
    query: Optional[str] = None
    map: Optional[str] = None
    behavior: FacetsBehavior = FacetsBehavior.DYNAMIC
    hide_unavailable_items: bool = Field(default=False, alias="hideUnavailableItems")

    class Config:
        frozen = True
        populate_by_name = True


class SearchMetadataArgs(BaseModel):
    query: Optional[str] = None
    map: Optional[str] = None

    class Config:
        frozen = True


class CompatibilityArgs(BaseModel):
    """A legacy query/map pair, as understood directly by the catalog backend."""
    query: str = ""
    map: str = ""

    class Config:
        frozen = True


class ProductIdentifierField(str, Enum):
    ID = "id"
    SLUG = "slug"
    EAN = "ean"
    REFERENCE = "reference"
    SKU = "sku"


class ProductIdentifier(BaseModel):
    field: ProductIdentifierField
    value: Optional[str] = None


class ProductArgs(BaseModel):
    slug: Optional[str] = None
    identifier: Optional[ProductIdentifier] = None


class ProductsByIdentifierArgs(BaseModel):
    field: ProductIdentifierField
    values: List[str] = []


class CrossSellingInput(str, Enum):
    VIEW = "view"
    BUY = "buy"
    SIMILARS = "similars"
    VIEW_AND_BOUGHT = "viewAndBought"
    SUGGESTIONS = "suggestions"
    ACCESSORIES = "accessories"


class SearchCrossSellingType(str, Enum):
    WHO_BOUGHT_ALSO_BOUGHT = "whoboughtalsobought"
    WHO_SAW_ALSO_SAW = "whosawalsosaw"
    SIMILARS = "similars"
    WHO_SAW_ALSO_BOUGHT = "whosawalsobought"
    ACCESSORIES = "accessories"
    SUGGESTIONS = "suggestions"


class ProductRecommendationArgs(BaseModel):
    identifier: Optional[ProductIdentifier] = None
    type: Optional[CrossSellingInput] = None
