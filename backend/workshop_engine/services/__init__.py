"""Services Layer — SQL stores, slot listing and the booking transaction handler.

Invariants:
    - Services talk to the core through Protocol types (core/repository_protocols.py)
    - Transactions begin and end inside one service call, never across routes

Design Decisions:
    - Booking retry policy in booking_handler.py, transaction mechanics in
      slot_ledger.py
"""
