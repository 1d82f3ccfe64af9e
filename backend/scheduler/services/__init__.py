"""Services Layer — orchestration of core rules around repositories.

Invariants:
    - One service object per unit of work (request); none is cached across requests
    - Services own the commit; repositories never commit
    - Services raise SchedulerError subclasses only (fan-out failures excepted:
      those are returned as warnings)
"""
