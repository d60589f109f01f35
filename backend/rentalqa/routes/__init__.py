# Routes package init
"""
RentalQ&A Backend — API Routes Package
========================================

Route Inventory:
    - questions.py:  GET  /api/questions   (aggregated list, search + category)
                     POST /api/questions   (submit question + first responses)
    - health.py:     GET  /health          (database + cache status)

Routes stay thin: extract parameters, call the query or mutation, set headers.
"""
