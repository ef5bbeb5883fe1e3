"""
EVDock Installments - Installment Plan Service

A FastAPI-based service that computes payment schedules for financed
vehicle purchases, records installment payments and reports upcoming
and overdue obligations for dealership staff.
"""

__version__ = "0.1.0"
