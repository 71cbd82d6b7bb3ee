"""Access-token verification delegated to the identity provider."""

from haex_sync.auth.verifier import (
    AccessTokenVerifier,
    SupabaseTokenVerifier,
    UserContext,
    extract_bearer_token,
)

__all__ = ["AccessTokenVerifier", "SupabaseTokenVerifier", "UserContext", "extract_bearer_token"]
