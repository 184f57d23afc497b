# Services package init
"""
Plateful Backend — Services Layer
===================================

Service Inventory:
    - filters: storage query builder, tag and text post-filters (pure)
    - opening_hours: "open now" evaluation against an injected clock (pure)
    - vote_state: immutable vote sets and their transitions (pure)
    - keyed_lock: per-restaurant asyncio locks
    - RestaurantService: listing, search and the filter pipeline
    - VotingService: vote mutations with per-restaurant serialization
    - VoteListingService: paginated "my votes"
"""
