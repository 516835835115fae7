from __future__ import annotations

import logging
import time

from ..storage.interactions import RECENT_INTERACTION_LIMIT
from ..storage.stores import Stores
from .filters import find_candidates
from .models import ScoredRestaurant, SearchFilters, UserInteraction, UserPreference
from .ranking import rank

logger = logging.getLogger(__name__)


def search_restaurants(filters: SearchFilters, stores: Stores) -> list[ScoredRestaurant]:
    """
    Filter at the store, then rank in memory.

    A user id only changes ranking when that user has a stored preference;
    unknown users are ranked anonymously.
    """
    start_time = time.time()

    candidates = find_candidates(stores.restaurants, filters)

    preference: UserPreference | None = None
    interactions: list[UserInteraction] = []
    if filters.user_id:
        preference = stores.preferences.get(filters.user_id)
        if preference is not None:
            interactions = stores.interactions.recent_for(
                filters.user_id, RECENT_INTERACTION_LIMIT
            )

    results = rank(candidates, filters, preference, interactions)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Search returned %d of %d candidates (%s ranking) in %sms",
        len(results),
        len(candidates),
        "personalized" if preference is not None else "anonymous",
        elapsed_ms,
    )
    return results
