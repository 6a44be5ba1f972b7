"""auth/ -- Account credentials, sessions and tokens for SPADE.

Layer rule: auth/ imports stdlib, third-party libraries and core/ only.
It does NOT import from api/ or community/.
api/ imports from auth/, not the other way around. The community profile
store is wired into AuthService by api/main.py.
"""
