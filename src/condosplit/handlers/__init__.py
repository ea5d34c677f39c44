from condosplit.handlers.admin import admin_router
from condosplit.handlers.basic import basic_router
from condosplit.handlers.bills import bills_router

__all__ = ["admin_router", "basic_router", "bills_router"]
