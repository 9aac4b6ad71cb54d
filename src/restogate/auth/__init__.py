"""
restogate.auth

Identity, session and access-gating package.

Responsibilities:
- Credential verification (bcrypt) and the password policy.
- Session markers that invalidate outstanding tokens.
- JWT issuing and validation.
- The tenant access gate and role authorization, plus FastAPI dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Everything except `deps` is framework-free and can be exercised without FastAPI.
