from .session_client import HmacSessionAuth, sign_request

__all__ = ["HmacSessionAuth", "sign_request"]
