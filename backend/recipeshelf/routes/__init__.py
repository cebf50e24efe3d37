# Routes package init
"""
RecipeShelf Backend — API Routes Package
=========================================

Route Inventory:
    - images.py:       POST /api/images
    - recipes.py:      /api/recipes (CRUD, listings, categories, search, ratings)
    - collections.py:  /api/collections (CRUD-lite and membership)
    - users.py:        /api/users (sign-up stand-in, profile, saved recipes)
    - health.py:       GET /health

Routes stay THIN: read the request, call a service, project the result
for the caller and wrap it with envelope.wrap().
"""
