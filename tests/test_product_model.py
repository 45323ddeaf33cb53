# tests/test_product_model.py

"""Tests for the Product and CountryShare dataclasses."""

import unittest

from src.models.product import CountryShare, Product


def _product(**kwargs: object) -> Product:
    data: dict[str, object] = {
        "id": "p-1",
        "name": "Hockey Stick",
        "price": 89.0,
        "url": "https://shop.ca/stick",
        "manufacturer": "North Wood",
        "description": "Hand-made stick",
        "available": False,
        "images": ["https://cdn.shop.ca/stick.png"],
    }
    data.update(kwargs)
    return Product(**data)  # type: ignore[arg-type]


class TestProduct(unittest.TestCase):
    """Product defaults and serialisation."""

    def test_defaults(self) -> None:
        """Optional collections default to independent empty lists."""
        a = Product(
            id="a", name="A", price=1.0, url="https://a.ca",
            manufacturer="M", description="D", available=True,
        )
        b = Product(
            id="b", name="B", price=1.0, url="https://b.ca",
            manufacturer="M", description="D", available=True,
        )
        a.images.append("https://a.ca/1.png")
        self.assertEqual(b.images, [])
        self.assertEqual(a.countries, [])
        self.assertIsNone(a.canadian_percentage)

    def test_to_dict_wire_names(self) -> None:
        """canadian_percentage is emitted as canadianPercentage."""
        data = _product(canadian_percentage=75.0).to_dict()
        self.assertEqual(data["canadianPercentage"], 75.0)
        self.assertNotIn("canadian_percentage", data)
        self.assertFalse(data["available"])

    def test_to_dict_omits_unknown_percentage(self) -> None:
        """A missing Canadian percentage is left out entirely."""
        self.assertNotIn("canadianPercentage", _product().to_dict())

    def test_countries_serialised(self) -> None:
        """Country shares serialise, dropping unknown percentages."""
        product = _product(countries=[
            CountryShare("CA", "Canada", 60.0),
            CountryShare("US", "United States"),
        ])
        self.assertEqual(
            product.to_dict()["countries"],
            [
                {"code": "CA", "name": "Canada", "percentage": 60.0},
                {"code": "US", "name": "United States"},
            ],
        )


if __name__ == "__main__":
    unittest.main()
