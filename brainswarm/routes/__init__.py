# Routes package init
"""
Brainswarm Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:     /api/register, /api/login, /api/logout,
                   /api/user, /api/me/teams
    - teams.py:    /api/teams/...
    - entries.py:  /api/teams/{team_id}/entries/...
    - health.py:   GET /health

Routes stay thin: extract input, call a service, return its response
model. Access rules and business logic live in services and core.
"""
