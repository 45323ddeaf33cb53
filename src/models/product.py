# src/models/product.py

"""Product data model for inter-module data flow."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CountryShare:
    """One country's involvement in making a product."""

    code: str
    name: str
    percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the wire shape, omitting an unknown percentage."""
        data: dict[str, Any] = {"code": self.code, "name": self.name}
        if self.percentage is not None:
            data["percentage"] = self.percentage
        return data


@dataclass
class Product:
    """A single validated listing from the provider or a catalog source."""

    id: str
    name: str
    price: float
    url: str
    manufacturer: str
    description: str
    available: bool
    images: list[str] = field(default_factory=lambda: list[str]())
    countries: list[CountryShare] = field(
        default_factory=lambda: list[CountryShare]()
    )
    canadian_percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON shape returned by ``GET /search``."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "url": self.url,
            "manufacturer": self.manufacturer,
            "description": self.description,
            "available": self.available,
            "images": list(self.images),
            "countries": [c.to_dict() for c in self.countries],
        }
        if self.canadian_percentage is not None:
            data["canadianPercentage"] = self.canadian_percentage
        return data
