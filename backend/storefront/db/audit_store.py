"""
Audit store — best-effort audit_logs writes.

Failures are logged and never raised; an audit row must not change the
outcome of the request that produced it.
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from storefront.db.base_store import BaseStore

logger = logging.getLogger("audit_store")

AUDIT_TABLE = "audit_logs"


class AuditStore(BaseStore):

    async def record(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        details: Dict[str, Any],
        ip_address: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> bool:
        """Insert one audit row. Returns False when the write failed."""
        row = {
            "user_id": user_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "details": details,
            "ip_address": ip_address,
        }
        try:
            await self._insert(AUDIT_TABLE, [row])
        except Exception as exc:
            logger.warning("audit log write failed action=%s user=%s detail=%s", action, user_id, exc)
            return False
        return True
