"""Item identity and modifier constants.

Item ids and attribute keys match the marketplace's binary item payloads.
Modifier names are the canonical names under which the price index stores the
consumables and upgrade items themselves.
"""

from types import MappingProxyType

# Item families resolved to a derived canonical name
ENCHANTED_BOOK_ID = "ENCHANTED_BOOK"
PET_ID = "PET"
UNKNOWN_ITEM = "UNKNOWN_ITEM"

# Pet rarity promotion
PET_TIER_BOOST_ITEM = "PET_ITEM_TIER_BOOST"
PET_TIER_BEFORE_BOOST = "EPIC"
PET_TIER_AFTER_BOOST = "LEGENDARY"

# ExtraAttributes keys
HOT_POTATO_COUNT_KEY = "hot_potato_count"
RARITY_UPGRADES_KEY = "rarity_upgrades"
WOOD_SINGULARITY_COUNT_KEY = "wood_singularity_count"
ENCHANTMENTS_KEY = "enchantments"
ORIGIN_TAG_KEY = "originTag"
PET_INFO_KEY = "petInfo"
UNKNOWN_ORIGIN = "UNKNOWN"

MODIFIER_COUNT_KEYS = (
    HOT_POTATO_COUNT_KEY,
    RARITY_UPGRADES_KEY,
    WOOD_SINGULARITY_COUNT_KEY,
)

# Modifier items priced from the index
HOT_POTATO_BOOK = "HOT_POTATO_BOOK"
FUMING_POTATO_BOOK = "FUMING_POTATO_BOOK"
RECOMBOBULATOR = "RECOMBOBULATOR_3000"
WOOD_SINGULARITY = "WOOD_SINGULARITY"

# Hot potato books stop at 10; later applications are fuming books
HOT_POTATO_BOOK_LIMIT = 10

# Lore marker for dungeon-scaled items
DUNGEON_LORE_MARKER = "DUNGEON"

EXPONENTIAL_ENCHANT_PREFIX = "ultimate"
EXPONENTIAL_ENCHANTS = frozenset({"dragon_hunter"})

# Minimum level at which an enchantment adds value to the item carrying it
DEFAULT_ENCHANT_MIN_LEVELS = MappingProxyType(
    {
        "ultimate_bank": 1,
        "ultimate_chimera": 1,
        "ultimate_combo": 1,
        "ultimate_duplex": 1,
        "ultimate_fatal_tempo": 1,
        "ultimate_flash": 1,
        "ultimate_inferno": 1,
        "ultimate_jerry": 1,
        "ultimate_last_stand": 1,
        "ultimate_legion": 1,
        "ultimate_no_pain_no_gain": 1,
        "ultimate_one_for_all": 1,
        "ultimate_refrigerate": 1,
        "ultimate_rend": 1,
        "ultimate_soul_eater": 1,
        "ultimate_swarm": 1,
        "ultimate_the_one": 1,
        "ultimate_wisdom": 1,
        "ultimate_wise": 1,
        "dragon_hunter": 1,
        "big_brain": 3,
        "charm": 5,
        "compact": 1,
        "counter_strike": 5,
        "critical": 6,
        "cultivating": 1,
        "divine_gift": 1,
        "dragon_tracer": 5,
        "ender_slayer": 6,
        "expertise": 1,
        "fire_protection": 6,
        "first_strike": 5,
        "giant_killer": 6,
        "green_thumb": 1,
        "growth": 6,
        "legion": 1,
        "lethality": 6,
        "life_steal": 4,
        "looting": 4,
        "luck": 6,
        "overload": 1,
        "power": 6,
        "pristine": 1,
        "protection": 6,
        "rejuvenate": 5,
        "scavenger": 4,
        "sharpness": 6,
        "smarty_pants": 1,
        "smite": 7,
        "strong_mana": 5,
        "syphon": 4,
        "thunderlord": 6,
        "titan_killer": 6,
        "true_protection": 1,
        "vampirism": 6,
    }
)

# Modifiers not discoverable through the listing feed
DEFAULT_PRICE_OVERRIDES = MappingProxyType({"DRAGON_SLAYER": 1_000_000.0})

__all__ = [
    "DEFAULT_ENCHANT_MIN_LEVELS",
    "DEFAULT_PRICE_OVERRIDES",
    "DUNGEON_LORE_MARKER",
    "ENCHANTED_BOOK_ID",
    "ENCHANTMENTS_KEY",
    "EXPONENTIAL_ENCHANTS",
    "EXPONENTIAL_ENCHANT_PREFIX",
    "FUMING_POTATO_BOOK",
    "HOT_POTATO_BOOK",
    "HOT_POTATO_BOOK_LIMIT",
    "HOT_POTATO_COUNT_KEY",
    "MODIFIER_COUNT_KEYS",
    "ORIGIN_TAG_KEY",
    "PET_ID",
    "PET_INFO_KEY",
    "PET_TIER_AFTER_BOOST",
    "PET_TIER_BEFORE_BOOST",
    "PET_TIER_BOOST_ITEM",
    "RARITY_UPGRADES_KEY",
    "RECOMBOBULATOR",
    "UNKNOWN_ITEM",
    "UNKNOWN_ORIGIN",
    "WOOD_SINGULARITY",
    "WOOD_SINGULARITY_COUNT_KEY",
]
