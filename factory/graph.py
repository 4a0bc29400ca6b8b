"""
Product Dependency Graph
------------------------
Bipartite directed graph of a Model: product -> recipe edges for usage,
recipe -> product edges for production. Used to explain infeasible targets
by finding products the model can never yield at a positive rate.
"""

from typing import Iterable, List

import networkx as nx

from factory.catalog import Model, Product


def build_product_graph(model: Model) -> nx.DiGraph:
    """Build the usage/production graph. Nodes are ("product", name) or ("recipe", name)."""
    graph = nx.DiGraph()
    for product in model.products:
        graph.add_node(("product", product.name), kind="product")
    for recipe in model.recipes:
        node = ("recipe", recipe.name)
        graph.add_node(node, kind="recipe")
        for product, qty in recipe.usage.items():
            graph.add_edge(("product", product.name), node, quantity=qty)
        for product, qty in recipe.production.items():
            graph.add_edge(node, ("product", product.name), quantity=qty)
    return graph


def _runnable(graph: nx.DiGraph, recipe_node, producible: set) -> bool:
    """A recipe can run once each input is producible or replenished by the recipe itself."""
    for source, _, data in graph.in_edges(recipe_node, data=True):
        # products outside the model have no balance row, so they are free
        if source in producible or data["quantity"] == 0 or graph.nodes[source].get("kind") is None:
            continue
        returned = graph.get_edge_data(recipe_node, source)
        if returned is None or returned["quantity"] < data["quantity"]:
            return False
    return True


def producible_products(model: Model) -> List[str]:
    """Names of products some chain of recipes can yield at a positive rate."""
    if not any(m.production_rate > 0 for m in model.machines):
        return []

    graph = build_product_graph(model)
    recipes = [n for n, kind in graph.nodes(data="kind") if kind == "recipe"]
    producible = set()
    changed = True
    while changed:
        changed = False
        for recipe in recipes:
            if not _runnable(graph, recipe, producible):
                continue
            for _, target, data in graph.out_edges(recipe, data=True):
                if data["quantity"] > 0 and target not in producible:
                    producible.add(target)
                    changed = True
    return sorted(name for _, name in producible)


def unproducible_products(model: Model, products: Iterable[Product]) -> List[str]:
    """
    Sorted names of the requested products the model cannot yield.

    This is a heuristic hint, not a feasibility test: products that only
    circulate in a closed recipe cycle are reported even though the solver
    may still satisfy a target on them.
    """
    reachable = set(producible_products(model))
    return sorted({p.name for p in products if p.name not in reachable})
