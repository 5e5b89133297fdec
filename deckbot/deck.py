import random
from typing import Iterable, List, Optional, Sequence


def available_cards(catalog_ids: Iterable[str], hand: Sequence[str]) -> List[str]:
    """Catalog cards not yet in the hand, in catalog order."""
    held = set(hand)
    return [card_id for card_id in catalog_ids if card_id not in held]


def choose_card(catalog_ids: Iterable[str], hand: Sequence[str], rng: random.Random = None) -> Optional[str]:
    """Uniformly picks an undrawn card. Returns None once the hand holds the whole deck."""
    pool = available_cards(catalog_ids, hand)
    if not pool:
        return None
    return (rng or random).choice(pool)
