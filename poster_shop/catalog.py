"""Fixed product reference data: poster tiers and movie themes."""

PRODUCTS = {
    "digital": {"price": 7900, "name": "Digital Only", "shipping_required": False},
    "print": {"price": 18900, "name": "Fine-Art Print", "shipping_required": True},
    "framed": {"price": 39900, "name": "Framed Edition", "shipping_required": True},
}

THEMES = {
    "homeAlone": "Home Alone",
    "elf": "Elf",
    "vacation": "Christmas Vacation",
}


class UnknownKey(KeyError):
    pass


def _product(tier: str) -> dict:
    try:
        return PRODUCTS[tier]
    except KeyError:
        raise UnknownKey(f"unknown tier: {tier!r}") from None


def price_of(tier: str) -> int:
    return _product(tier)["price"]


def product_name(tier: str) -> str:
    return _product(tier)["name"]


def requires_shipping(tier: str) -> bool:
    return _product(tier)["shipping_required"]


def display_name(theme: str) -> str:
    try:
        return THEMES[theme]
    except KeyError:
        raise UnknownKey(f"unknown theme: {theme!r}") from None
