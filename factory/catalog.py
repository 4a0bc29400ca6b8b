"""
Production Catalog
------------------
Immutable records describing what a factory can build with:

  - Product: a named material tracked for balance
  - Machine: a producer unit with a capacity multiplier
  - Recipe: a timed conversion of products into products
  - Model: the declared universe of recipes, products and machines

Identity is the name. Every other field is an attribute and is left out of
equality and hashing, so two records sharing a name are the same entity.
Records convert to and from plain dicts for JSON transport.
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Product:
    """A material, known only by its name."""

    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        return cls(str(data["name"]))


@dataclass(frozen=True)
class Machine:
    """A machine type; production_rate scales every recipe it runs."""

    name: str
    production_rate: float = field(compare=False)

    def __post_init__(self):
        if self.production_rate < 0:
            raise ValueError(f"Machine '{self.name}' has negative production_rate")
        object.__setattr__(self, "production_rate", float(self.production_rate))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "production_rate": self.production_rate}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Machine":
        return cls(str(data["name"]), float(data["production_rate"]))


def _freeze_quantities(recipe: str, kind: str, raw: Mapping[Product, float]) -> Mapping[Product, float]:
    quantities = {}
    for product, qty in raw.items():
        if qty < 0:
            raise ValueError(f"Recipe '{recipe}' has negative {kind} of '{product.name}'")
        quantities[product] = float(qty)
    return MappingProxyType(quantities)


@dataclass(frozen=True)
class Recipe:
    """
    A conversion process.

    production_time is seconds per cycle. usage and production map each
    product to the quantity consumed or produced per cycle. A product may
    appear in either mapping, both, or neither.
    """

    name: str
    production_time: float = field(compare=False)
    usage: Mapping[Product, float] = field(default_factory=dict, compare=False)
    production: Mapping[Product, float] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not self.production_time > 0:
            raise ValueError(f"Recipe '{self.name}' must have a positive production_time")
        object.__setattr__(self, "production_time", float(self.production_time))
        object.__setattr__(self, "usage", _freeze_quantities(self.name, "usage", self.usage))
        object.__setattr__(self, "production", _freeze_quantities(self.name, "production", self.production))

    def usage_of(self, product: Product) -> Optional[float]:
        """Quantity of product consumed per cycle, or None if the recipe does not use it."""
        return self.usage.get(product)

    def production_of(self, product: Product) -> Optional[float]:
        """Quantity of product yielded per cycle, or None if the recipe does not yield it."""
        return self.production.get(product)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "production_time": self.production_time,
            "usage": {p.name: qty for p, qty in self.usage.items()},
            "production": {p.name: qty for p, qty in self.production.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        return cls(
            name=str(data["name"]),
            production_time=float(data["production_time"]),
            usage={Product(p): float(q) for p, q in data.get("usage", {}).items()},
            production={Product(p): float(q) for p, q in data.get("production", {}).items()},
        )


def _unique(kind: str, entities: Iterable[Any]) -> Tuple[Any, ...]:
    items = tuple(entities)
    seen = set()
    for item in items:
        if item.name in seen:
            raise ValueError(f"Duplicate {kind} name '{item.name}'")
        seen.add(item.name)
    return items


class Model:
    """
    Snapshot of the recipes, products and machines under consideration.

    Collections keep the caller's order and reject duplicate names. The
    model is read-only once built; make a new one to change the universe.
    """

    def __init__(self, recipes: Iterable[Recipe], products: Iterable[Product], machines: Iterable[Machine]):
        self._recipes = _unique("recipe", recipes)
        self._products = _unique("product", products)
        self._machines = _unique("machine", machines)
        self._product_set = frozenset(self._products)

    @property
    def recipes(self) -> Tuple[Recipe, ...]:
        return self._recipes

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    @property
    def machines(self) -> Tuple[Machine, ...]:
        return self._machines

    def has_product(self, product: Product) -> bool:
        return product in self._product_set

    def product(self, name: str) -> Product:
        return _lookup("product", self._products, name)

    def machine(self, name: str) -> Machine:
        return _lookup("machine", self._machines, name)

    def recipe(self, name: str) -> Recipe:
        return _lookup("recipe", self._recipes, name)

    def __eq__(self, other):
        if not isinstance(other, Model):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Model(recipes={len(self._recipes)}, products={len(self._products)}, "
                f"machines={len(self._machines)})")

    # Serialization -------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipes": [r.to_dict() for r in self._recipes],
            "products": [p.to_dict() for p in self._products],
            "machines": [m.to_dict() for m in self._machines],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Model":
        return cls(
            recipes=[Recipe.from_dict(r) for r in data.get("recipes", [])],
            products=[Product.from_dict(p) for p in data.get("products", [])],
            machines=[Machine.from_dict(m) for m in data.get("machines", [])],
        )

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text: str) -> "Model":
        return cls.from_dict(json.loads(text))


def _lookup(kind: str, entities: Tuple[Any, ...], name: str):
    for entity in entities:
        if entity.name == name:
            return entity
    raise KeyError(f"Unknown {kind} '{name}'")
