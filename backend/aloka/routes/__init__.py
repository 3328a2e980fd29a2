# Routes package init
"""
ALOKA Backend — API Routes Package
===================================

Route Inventory:
    - studios.py: GET    /api/studios          (list/search/filter/paginate)
                  POST   /api/studios          (create)
                  PATCH  /api/studios?id=...   (partial update)
                  DELETE /api/studios?id=...   (soft delete)
    - auth.py:    POST   /api/auth/signup
                  POST   /api/auth/login
                  GET    /api/auth/me
    - health.py:  GET    /health

Routes stay thin: read the request, call a service, return the schema.
Errors are raised, never formatted here.
"""
