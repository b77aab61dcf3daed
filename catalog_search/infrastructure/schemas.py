"""Search backend schemas.

Pydantic models for the search backend responses. Field names follow
Python conventions and are populated from the backend's camelCase keys.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from catalog_search.domain.filters import AttributeDimension, FilterFlag


class BackendModel(BaseModel):
    """Base model reading camelCase keys and ignoring unknown ones."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ============================================================================
# Facet Schemas
# ============================================================================


class FacetBucket(BackendModel):
    """One facet value and its hit count.

    The backend keys buckets by ``id`` (categories, brands), ``key`` or
    ``code`` (attribute values); all of them end up in ``code``.
    """

    code: str = Field(..., description="Bucket identifier as a string")
    label: str | None = Field(default=None, description="Display name, if provided")
    count: int = Field(default=0, ge=0, description="Number of matching hits")

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "code" not in data:
            for key in ("key", "id"):
                if data.get(key) is not None:
                    data["code"] = data[key]
                    break
        if data.get("code") is not None:
            data["code"] = str(data["code"])
        if "label" not in data and "name" in data:
            data["label"] = data["name"]
        return data

    @property
    def id(self) -> int | None:
        """Numeric id for category and brand buckets."""
        return int(self.code) if self.code.isdigit() else None


class PriceRange(BackendModel):
    """Price statistics over the matching hits."""

    min: Decimal | None = None
    max: Decimal | None = None
    avg: Decimal | None = None


class SearchFacets(BackendModel):
    """Facet buckets returned alongside a result page.

    Attribute buckets arrive either at the top level (product and plant
    search) or nested under ``careFacets`` (offer search); both shapes are
    folded into ``attributes`` and ``flag_counts``.
    """

    categories: list[FacetBucket] = Field(default_factory=list)
    brands: list[FacetBucket] = Field(default_factory=list)
    sellers: list[FacetBucket] = Field(default_factory=list)
    price_range: PriceRange | None = None
    in_stock_count: int = 0
    attributes: dict[AttributeDimension, list[FacetBucket]] = Field(default_factory=dict)
    flag_counts: dict[FilterFlag, int] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_care_facets(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "attributes" in data:
            return data
        sources = [data]
        if isinstance(data.get("careFacets"), dict):
            sources.append(data["careFacets"])

        attributes: dict[str, Any] = {}
        flag_counts: dict[str, int] = {}
        for source in sources:
            for dimension in AttributeDimension:
                if source.get(dimension.value):
                    attributes[dimension.value] = source[dimension.value]
            for flag in FilterFlag:
                count = source.get(f"{flag.value}Count")
                if count is not None:
                    flag_counts[flag.value] = count

        data = {key: value for key, value in data.items() if key != "careFacets"}
        data["attributes"] = attributes
        data["flag_counts"] = flag_counts
        return data

    def buckets_for(self, dimension: AttributeDimension) -> list[FacetBucket]:
        """Get buckets of one attribute dimension (empty if absent)."""
        return self.attributes.get(dimension, [])


# ============================================================================
# Result Schemas
# ============================================================================


class SearchHit(BackendModel):
    """A single search hit.

    Offer hits carry ``offerId``/``title``, product hits ``productId``/``name``.
    Fields the catalog view does not interpret are kept in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    title: str = ""
    slug: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    price: Decimal | None = None
    min_price: Decimal | None = None
    currency: str | None = None
    in_stock: bool | None = None
    main_image_url: str | None = None
    rating: float | None = None
    score: float | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "id" not in data:
            for key in ("offerId", "productId", "taxonomyId"):
                if data.get(key) is not None:
                    data["id"] = data[key]
                    break
        if not data.get("title"):
            data["title"] = data.get("name") or data.get("commonName") or ""
        return data


class SearchResult(BackendModel):
    """One page of search results."""

    hits: list[SearchHit] = Field(default_factory=list)
    total_hits: int = Field(default=0, ge=0)
    page: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    has_next: bool = False
    has_previous: bool = False
    facets: SearchFacets | None = None
    took_ms: float | None = None

    @classmethod
    def empty(cls) -> "SearchResult":
        """Get a result with no hits."""
        return cls()


class IndexStatus(BackendModel):
    """Health of the search index."""

    status: str
    elasticsearch: str | None = None
    total_documents: int | None = None
    response_time_ms: int | None = None
    message: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.status.upper() == "OK"
