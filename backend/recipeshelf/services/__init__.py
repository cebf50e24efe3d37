# Services package init
"""
RecipeShelf Backend — Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the models (persistence).
How:   Stateless singletons; every method receives the request's AsyncSession
       and only flushes. The commit belongs to get_db_session.

Service Inventory:
    - ImageService:       register provider images, existence checks
    - RecipeService:      recipe CRUD, listings, category/rating rollups, search
    - CollectionService:  collection lifecycle, membership, detail view
    - UserService:        profiles and saved recipes
    - aggregation:        pure category grouping used by RecipeService
"""
