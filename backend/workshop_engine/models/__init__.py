"""ORM Models — SQLAlchemy declarative models for templates, slots and bookings.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models convert to frozen core records via to_domain(); core never sees ORM objects

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from workshop_engine.models.workshop_template import WorkshopTemplateModel  # noqa: F401
from workshop_engine.models.workshop_slot import WorkshopSlotModel  # noqa: F401
from workshop_engine.models.booking import BookingModel  # noqa: F401
