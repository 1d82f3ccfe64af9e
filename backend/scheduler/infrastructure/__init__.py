"""Infrastructure Layer — database access, repositories, live broadcast and logging.

Invariants:
    - Infrastructure may use core/ types and errors but never services/ or api/
    - Driver failures are mapped onto the scheduler error taxonomy before
      they leave this layer

Design Decisions:
    - Singletons (db_manager, band_hub) created once in the app lifespan
"""
