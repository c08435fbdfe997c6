"""
Cursor pagination for marketplace list endpoints.

Cursor-based pagination keeps pages stable while new transactions and
return requests are inserted. Cursors encode created_at.
"""

from rest_framework.pagination import CursorPagination


class CreatedAtCursorPagination(CursorPagination):
    """
    Newest first.

    Default: 20 items per page
    Maximum: 100 items per page
    """

    page_size = 20
    max_page_size = 100
    page_size_query_param = "page_size"
    ordering = "-created_at"
    cursor_query_param = "cursor"
