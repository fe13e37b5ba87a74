"""
BookWorm Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database / Google Books.

Service Inventory:
    - UserService:        register, log-in, profile read/update, password change
    - ListService:        add / list / delete across the three list kinds
    - BookSearchService:  pass-through search against the Google Books API
"""
