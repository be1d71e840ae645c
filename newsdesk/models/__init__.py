"""ORM models. Importing this package registers every table with Base.metadata."""

from newsdesk.models.blog import Blog, blog_categories, blog_tags
from newsdesk.models.category import Category
from newsdesk.models.tag import Tag
from newsdesk.models.user import ROLE_ADMIN, ROLE_USER, User

__all__ = [
    "Blog",
    "Category",
    "Tag",
    "User",
    "ROLE_ADMIN",
    "ROLE_USER",
    "blog_categories",
    "blog_tags",
]
