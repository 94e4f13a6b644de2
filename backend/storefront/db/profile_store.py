"""
Profile store — role lookups for signed-in users.

Handles reads against the profiles table in Supabase.
"""

import logging
from typing import Any, Dict, Optional

from storefront.db.base_store import BaseStore

logger = logging.getLogger("profile_store")


class ProfileStore(BaseStore):

    def get_auth_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Resolve a Supabase access token to its user.

        Returns {"id", "email"} or None when the token is not accepted.
        """
        response = self._client.auth.get_user(access_token)
        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            return None
        return {"id": str(user.id), "email": getattr(user, "email", None)}

    async def get_role(self, user_id: str) -> Optional[str]:
        """Role from profiles, or None when the user has no profile row."""
        rows = await self._select("profiles", "role", {"id": user_id}, limit=1)
        if not rows:
            return None
        return rows[0].get("role")
