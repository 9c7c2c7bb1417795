"""Pydantic schema for a single product-watch definition."""

from pydantic import BaseModel, ConfigDict, Field


class Target(BaseModel):
    """A configured (retailer, product URL) pair to monitor.

    Targets are frozen so they can live in sets: two records that are equal
    field-wise (name, url, key, active, is_test) collapse to one restock.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Human label shown in notifications")
    url: str = Field(..., min_length=1, description="Product page URL")
    key: str = Field(..., min_length=1, description="Retailer key, selects the adapter")
    active: bool = Field(True, description="Only active targets are polled")
    is_test: bool = Field(
        False,
        description="Known in-stock product used to detect adapter regressions",
    )

    def new_stock_message(self) -> str:
        """Human-readable message announcing this target is back in stock."""
        return f"{self.key} has new {self.name} for sale at {self.url}!"
