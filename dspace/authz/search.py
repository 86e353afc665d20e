"""
A simple search index over the repository's items, used to enumerate the items contained in (or
identified by) a set of target objects.

Queries are expressed as one or more ``field:value`` terms joined by ``OR``; the supported fields
are:

``location.comm``
    matches items appearing under the community with the given identifier (at any depth)
``location.coll``
    matches items appearing in the collection with the given identifier
``search.resourceid``
    matches the item with the given identifier

Results are always sorted by item identifier (``search.resourceid``) in ascending order.
"""
import logging
from typing import List, Iterable, Iterator

from . import constants as const
from .content import DSpaceObject, Item
from .context import Context
from .dbio.base import LOCATION_COMM, LOCATION_COLL, RESOURCE_ID, SEARCH_FIELDS, SearchTerm

SORT_FIELD = RESOURCE_ID
DEF_PAGE_SIZE = 20

_field_for_type = {
    const.COMMUNITY:  LOCATION_COMM,
    const.COLLECTION: LOCATION_COLL,
    const.ITEM:       RESOURCE_ID
}

class SearchService(object):
    """
    a service for finding items via the search index
    """

    def __init__(self, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("authz.search")
        self.log = log

    def build_query(self, targets: Iterable[DSpaceObject]) -> str:
        """
        build a query that will match all items under or identified by the given objects.
        :param targets:  a list of Community, Collection, or Item objects
        :raises ValueError:  if any of the targets is not one of the supported types
        """
        terms = []
        for obj in targets:
            field = _field_for_type.get(obj.type)
            if not field:
                raise ValueError("Unsupported search target type: "+str(obj.type))
            terms.append("%s:%s" % (field, obj.id))
        return " OR ".join(terms)

    def parse_query(self, query: str) -> List[SearchTerm]:
        """
        parse the given query into a list of (field, value) terms
        :raises ValueError:  if the query is syntactically incorrect or refers to an unsupported field
        """
        if not query or not query.strip():
            raise ValueError("Empty search query")

        out = []
        for term in query.split(" OR "):
            term = term.strip()
            if ':' not in term:
                raise ValueError("Bad search term (need field:value): "+term)
            field, value = term.split(':', 1)
            field = field.strip()
            value = value.strip()
            if field not in SEARCH_FIELDS:
                raise ValueError("Unsupported search field: "+field)
            if not value:
                raise ValueError("Missing value for search term: "+term)
            out.append((field, value))
        return out

    def search(self, context: Context, query: str, start: int=0, limit: int=DEF_PAGE_SIZE) -> List[Item]:
        """
        return a page of the items matching the given query, sorted by identifier
        :param Context context:  the context to load the items into
        :param str       query:  the query (see module documentation for its syntax)
        :param int       start:  the offset of the first match to return
        :param int       limit:  the maximum number of items to return
        """
        terms = self.parse_query(query)
        return [Item(rec, context.dbclient)
                for rec in context.dbclient.search_items(terms, start, limit)]

    def cursor(self, context: Context, query: str, page_size: int=DEF_PAGE_SIZE) -> "ItemCursor":
        return ItemCursor(self, context, query, page_size)


class ItemCursor(object):
    """
    an iterator over the results of a search query that retrieves one page of items at a time.

    Each page is fetched by re-running the query with the next offset, so the items returned by
    earlier pages may be updated (and committed) while the iteration proceeds.  Only the current page
    is held in memory.
    """

    def __init__(self, searcher: SearchService, context: Context, query: str,
                 page_size: int=DEF_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("ItemCursor: page_size must be positive")
        self.searcher = searcher
        self.context = context
        self.query = query
        self.page_size = page_size
        self.offset = 0
        self.pages_fetched = 0

    def next_page(self) -> List[Item]:
        """
        return the next page of matching items or an empty list if there are no more
        """
        page = self.searcher.search(self.context, self.query, self.offset, self.page_size)
        if page:
            self.pages_fetched += 1
            self.offset += len(page)
        return page

    def __iter__(self) -> Iterator[Item]:
        while True:
            page = self.next_page()
            for item in page:
                yield item
            if len(page) < self.page_size:
                break
