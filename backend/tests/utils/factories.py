"""Test data factories using Faker for generating realistic test data."""
from decimal import Decimal
from typing import Any

from faker import Faker

fake = Faker()


class UserFactory:
    """Factory for signup payloads."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create signup request data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Signup payload
        """
        data = {
            "email": fake.unique.email(),
            "password": fake.password(length=12),
            "role": "user",
        }
        if overrides:
            data.update(overrides)
        return data


class ProductFactory:
    """Factory for product payloads."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create product request data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Product payload with price as a JSON number
        """
        price = Decimal(fake.random_int(min=100, max=99999)) / 100
        data = {
            "name": f"{fake.word().title()} {fake.random_element(['Bracket', 'Flange', 'Rod', 'Sheet', 'Coil'])}",
            "price": float(price),
            "description": fake.sentence(nb_words=8),
        }
        if overrides:
            data.update(overrides)
        return data
