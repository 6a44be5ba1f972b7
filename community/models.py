"""
community/models.py -- Domain dataclasses for the community store.

These are pure data containers with zero logic. Persistence lives in
community/store.py.
"""

from dataclasses import dataclass


@dataclass
class Profile:
    """Public profile of an account.

    id is the account's subject_id from the authentication store -- the same
    value access tokens carry as their subject. The community store never
    sees the internal account id, the email, or the password hash.
    """

    id: str
    username: str
    avatar: str = ""
    created_at: str = ""  # ISO 8601, set by store on insert
