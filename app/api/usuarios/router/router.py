# app/api/usuarios/router/router.py

from fastapi import APIRouter

from app.api.usuarios.router import router_auth, router_groups, router_invites, router_users

api_usuarios = APIRouter()

api_usuarios.include_router(router_auth.router)
api_usuarios.include_router(router_groups.router)
api_usuarios.include_router(router_users.router)
api_usuarios.include_router(router_invites.router)
