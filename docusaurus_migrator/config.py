"""Build Mintlify docs.json / versions.json navigation for migrated products."""

import json
import os
import re

from .navigation import NavGroup, NavNode, NavPage, nav_to_config

PRODUCT_ICONS = {
    'sdk': 'gear',
    'ibc': 'link',
    'cometbft': 'star',
    'evm': 'code',
    'wasmd': 'cube',
    'hermes': 'rocket',
}
DEFAULT_ICON = 'book'


def product_icon(product: str) -> str:
    return PRODUCT_ICONS.get(product.lower(), DEFAULT_ICON)


def sort_versions(versions) -> list[str]:
    """``next`` first, then newest version first."""
    def key(version: str):
        numbers = [int(n) for n in re.findall(r'\d+', version)]
        return (numbers, version)

    released = sorted((v for v in versions if v != 'next'), key=key, reverse=True)
    return (['next'] if 'next' in versions else []) + released


def build_dropdown(product: str, version_navs: dict[str, list[NavNode]]) -> dict:
    """Build the product's navigation dropdown with one entry per version."""
    label = product.upper()
    versions = []
    for version in sort_versions(list(version_navs)):
        nodes = version_navs[version]
        # Root pages go into a group named after the product
        standalone = [node.path for node in nodes if isinstance(node, NavPage)]
        groups = [{"group": label, "pages": standalone}] if standalone else []
        groups.extend(nav_to_config([node for node in nodes if isinstance(node, NavGroup)]))
        versions.append({
            "version": version,
            "tabs": [{"tab": "Documentation", "groups": groups}],
        })

    return {
        "dropdown": label,
        "icon": product_icon(product),
        "versions": versions,
    }


def update_docs_json(docs_json: dict, dropdown: dict) -> dict:
    """Replace the product's dropdown in docs.json (or append it)."""
    navigation = docs_json.setdefault("navigation", {})
    dropdowns = navigation.setdefault("dropdowns", [])
    name = dropdown["dropdown"].lower()
    for index, existing in enumerate(dropdowns):
        if str(existing.get("dropdown", '')).lower() == name:
            # Keep a hand-picked icon
            merged = dict(dropdown)
            merged["icon"] = existing.get("icon", dropdown["icon"])
            dropdowns[index] = merged
            return docs_json
    dropdowns.append(dropdown)
    return docs_json


def update_versions_json(versions_json: dict, product: str, versions) -> dict:
    products = versions_json.setdefault("products", {})
    ordered = sort_versions(list(versions))
    products[product] = {
        "versions": ordered,
        "defaultVersion": 'next' if 'next' in ordered else (ordered[0] if ordered else 'next'),
    }
    return versions_json


def read_json(path: str) -> dict:
    """Read a JSON file; a missing file reads as an empty object."""
    if not os.path.isfile(path):
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(config: dict, output_path: str):
    """Write a JSON config to disk."""
    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)
        f.write('\n')
    print(f"  Generated {output_path}")
