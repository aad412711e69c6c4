from aiogram import Router

from . import auth, booking, catalog, contact, dashboard, start


def setup_routers() -> Router:
    """
    Aggregate and return root router for the bot.
    """

    router = Router(name="root")
    router.include_router(start.router)
    router.include_router(catalog.router)
    router.include_router(auth.router)
    router.include_router(booking.router)
    router.include_router(dashboard.router)
    router.include_router(contact.router)
    return router
