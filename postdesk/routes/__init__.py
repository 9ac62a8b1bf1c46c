# Routes package init
"""
PostDesk Backend — API Routes Package
=====================================

Route Inventory:
    - posts.py:   GET    /posts             (list posts)
                  POST   /posts             (create post)
                  GET    /posts/{id}        (get post)
                  PUT    /posts/{id}        (partial update)
                  DELETE /posts/{id}        (delete post)
    - health.py:  GET    /health            (service health check)

Routes stay thin: pull the ID and body out of the request, call
PostService, return its response model.
"""
