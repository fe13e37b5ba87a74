"""
BookWorm Backend — API Routes Package
=======================================

Route Inventory:
    Public:
    - auth.py:     POST /register, POST /log-in, GET /log-out
    - search.py:   GET  /search-books
    - health.py:   GET  /health

    Bearer token required (database session, then auth gate):
    - lists.py:    POST /add-to-list, GET /fav-books, GET /wishlist,
                   GET /finished-books, DELETE /delete
    - profile.py:  GET /user-data, PUT /update-user, PUT /update-password

Routes stay thin: pull inputs from the request, call one service, wrap the
result in the response envelope.
"""
