# app/api/whatsapp/router/router.py

from fastapi import APIRouter

from app.api.whatsapp.router import (
    router_contacts,
    router_instances,
    router_messages,
    router_quick_messages,
    router_settings,
    router_webhook,
)

api_whatsapp = APIRouter()

api_whatsapp.include_router(router_webhook.router)
api_whatsapp.include_router(router_instances.router)
api_whatsapp.include_router(router_messages.router)
api_whatsapp.include_router(router_contacts.router)
api_whatsapp.include_router(router_quick_messages.router)
api_whatsapp.include_router(router_settings.router)
