# Services package init
"""
Brainswarm Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services take the session and the authenticated user, check access
       through brainswarm.core.access, and return response schemas.
       Routes stay thin and only translate HTTP in and out.

Service Inventory:
    - AuthService:       Registration, login and bearer-token revocation
    - MembershipService: Team lookup and the caller's membership snapshot
    - TeamService:       Teams, invites, admin management, leave and delete
    - EntryService:      Entry CRUD, soft-delete trash, ranking and CSV export
"""
