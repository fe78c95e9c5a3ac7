from typing import List, Optional, Sequence

from gardenbook.schemas.catalog import CatalogItem, CatalogType

MAX_RESULTS = 20
MIN_QUERY_LENGTH = 2


def filter_catalog(
    items: Sequence[CatalogItem],
    query: str,
    type: Optional[CatalogType] = None,
    max_results: int = MAX_RESULTS,
    min_query_length: int = MIN_QUERY_LENGTH,
) -> List[CatalogItem]:
    """
    Autocomplete candidates for a line item.

    Every whitespace-separated token of the query must occur somewhere in
    name + description + tags (case-insensitive); token order is irrelevant.
    Names starting with the whole query rank first, then alphabetical.

    Returns:
        At most max_results matching catalog items
    """
    if not query or len(query) < min_query_length:
        return []

    normalized_query = query.lower().strip()
    tokens = normalized_query.split()

    candidates = items
    if type is not None:
        candidates = [item for item in candidates if item.type == type]

    matched = []
    for item in candidates:
        searchable_text = " ".join([item.name, item.description, *item.tags]).lower()
        if all(token in searchable_text for token in tokens):
            matched.append(item)

    matched.sort(key=lambda item: (
        not item.name.lower().startswith(normalized_query),
        item.name.lower(),
    ))

    return matched[:max_results]
