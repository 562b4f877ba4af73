"""
Brainswarm Backend — Core Rules
===============================

Pure, synchronous decision logic with no database or HTTP dependencies:

    - priority.py: entry attributes → final_prio ranking integer
    - access.py:   (operation, actor, membership snapshot) → allowed?

Services resolve records and membership roles, then call into these modules.
"""
