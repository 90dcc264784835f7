#!/usr/bin/env python3
"""
Item lookup for League of Legends replays

Maps numeric item ids from replay statistics to names and Data Dragon image
URLs. Uses items.json (Data Dragon item.json format) next to this file when
present, otherwise a small built-in table.

Usage:
    python item_lookup.py                 # Show table stats
    python item_lookup.py 1055 3078       # Look up item ids
"""

import json
import logging
import os
import sys
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ITEMS_JSON_PATH = os.path.join(os.path.dirname(__file__), 'items.json')
DDRAGON_VERSION = '15.14.1'
DDRAGON_CDN = 'https://ddragon.leagueoflegends.com/cdn'

# Items removed from the current patch, mapped to the last patch that still has their icon
LEGACY_ITEM_VERSIONS = {
    3172: '14.24.1',  # Zephyr
}

BUILTIN_ITEM_NAMES = {
    # Boots
    3020: "Sorcerer's Shoes",
    3047: "Plated Steelcaps",
    # Consumables & wards
    3340: "Stealth Ward",
    2031: "Refillable Potion",
    2003: "Health Potion",
    # Components
    1058: "Needlessly Large Rod",
    1052: "Amplifying Tome",
    1055: "Doran's Blade",
    1036: "Long Sword",
    1033: "Null-Magic Mantle",
    # Legendary
    3046: "Phantom Dancer",
    3078: "Trinity Force",
    3172: "Zephyr (Legacy Item)",
    3871: "Bloodmail",
    4646: "Stormsurge",
    6655: "Luden's Companion",
    3033: "Mortal Reminder",
    3031: "Infinity Edge",
    3094: "Rapid Firecannon",
    6672: "Kraken Slayer",
    6632: "Divine Sunderer",
    4005: "Imperial Mandate",
    3153: "Blade of the Ruined King",
}


class ItemLookup:
    """Lookup table for item ids to names and icon URLs. An empty items_json_path uses only the built-in names."""

    def __init__(self, items_json_path: Optional[str] = None, version: Optional[str] = None):
        # None: ROFL_ITEMS_JSON, else items.json beside this module
        if items_json_path is None:
            items_json_path = os.environ.get('ROFL_ITEMS_JSON', ITEMS_JSON_PATH)
        self.version = version or os.environ.get('ROFL_DDRAGON_VERSION', DDRAGON_VERSION)
        self.names: Dict[int, str] = dict(BUILTIN_ITEM_NAMES)
        if items_json_path and os.path.exists(items_json_path):
            self._load(items_json_path)

    def _load(self, path: str):
        """Merge names from a Data Dragon item.json file."""
        with open(path, 'r', encoding='utf-8-sig') as f:
            data = json.load(f)

        entries = data.get('data', data) if isinstance(data, dict) else {}
        loaded = 0
        for key, value in entries.items():
            if not isinstance(value, dict) or 'name' not in value:
                continue
            try:
                self.names[int(key)] = value['name']
            except ValueError:
                continue
            loaded += 1
        logger.debug("Loaded %d item names from %s", loaded, path)

    def get_name(self, item_id: int) -> str:
        return self.names.get(item_id, f"Item #{item_id}")

    def image_url(self, item_id: int) -> str:
        version = LEGACY_ITEM_VERSIONS.get(item_id, self.version)
        return f"{DDRAGON_CDN}/{version}/img/item/{item_id}.png"

    def champion_image_url(self, champion: Optional[str]) -> Optional[str]:
        if not champion:
            return None
        return f"{DDRAGON_CDN}/{self.version}/img/champion/{champion}.png"

    def describe(self, slot: int, item_id: int) -> dict:
        return {
            'slot': slot,
            'item_id': item_id,
            'name': self.get_name(item_id),
            'image_url': self.image_url(item_id),
        }


def main():
    lookup = ItemLookup()
    print(f"Loaded {len(lookup.names):,} item names (Data Dragon {lookup.version})")

    for arg in sys.argv[1:]:
        try:
            item_id = int(arg)
        except ValueError:
            print(f"  {arg}: not an item id")
            continue
        status = "FOUND" if item_id in lookup.names else "NOT FOUND"
        print(f"  {item_id}: {lookup.get_name(item_id)} [{status}]")


if __name__ == '__main__':
    main()
