"""Coordinate transforms and confinement checks."""

from torfields.geometry.coordinates import (
    cart_to_cyl,
    cart_to_tor,
    cart_to_tor_check_if_confined,
    cyl_check_if_confined,
    cyl_to_cart,
    cyl_to_cart_vector,
    tor_to_cart,
)

__all__ = [
    "cart_to_cyl",
    "cart_to_tor",
    "cart_to_tor_check_if_confined",
    "cyl_check_if_confined",
    "cyl_to_cart",
    "cyl_to_cart_vector",
    "tor_to_cart",
]
