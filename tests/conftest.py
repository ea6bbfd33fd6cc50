from datetime import datetime, timedelta

import pytest

from vending_machine import Inventory, Product, ProductCategory, VendingMachine


class FakeClock:
    """Deterministic timestamps, one second apart"""

    def __init__(self):
        self._now = datetime(2024, 1, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def inventory():
    return Inventory([
        Product("cola", "Cola", 1000, stock=5, category=ProductCategory.BEVERAGE),
        Product("coffee", "Coffee", 1500, stock=3, capacity=6, category=ProductCategory.BEVERAGE),
        Product("gum", "Gum", 300, stock=0, category=ProductCategory.CANDY),
    ])


@pytest.fixture
def machine(inventory):
    return VendingMachine("VM-TEST", inventory, clock=FakeClock())
