"""
HTTP layer for the account sessions service.

Routes live in user_routes, the bearer-token dependency in auth_middleware,
and create_app() in app wires them to an AccountSessionManager.
"""
