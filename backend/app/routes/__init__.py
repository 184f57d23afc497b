# Routes package init
"""
Plateful Backend — API Routes Package
=======================================

Route Inventory:
    - restaurants.py: GET    /api/restaurants, /{id}, /search, /filter,
                             /cuisines, /by-tags, /popular
    - votes.py:       POST   /api/restaurants/{id}/upvote, /{id}/downvote
                      DELETE /api/restaurants/{id}/vote
                      GET    /api/restaurants/{id}/vote-status
    - me.py:          GET    /api/me/votes/up, /api/me/votes/down
    - health.py:      GET    /health

Routes stay thin: parse the request, call a service, return its result.
"""
