"""UserRepository: lazy get-or-create of wallet identities.

Raw text() SQL; the caller owns the transaction.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_gateway.user.wallet import normalize_wallet


@dataclass
class UserRecord:
    id: str
    wallet: str
    fid: str | None
    display_name: str | None


# A stored placeholder fid ("none…" or NULL) may be replaced by a real one;
# a real fid is never overwritten here.
_UPSERT_USER_SQL = text("""
    INSERT INTO users (wallet, fid)
    VALUES (:wallet, :fid)
    ON CONFLICT (wallet) DO UPDATE
        SET fid = CASE
                WHEN users.fid IS NULL OR users.fid LIKE 'none%'
                THEN COALESCE(EXCLUDED.fid, users.fid)
                ELSE users.fid
            END
    RETURNING id, wallet, fid, display_name
""")

_GET_BY_WALLET_SQL = text("""
    SELECT id, wallet, fid, display_name FROM users WHERE wallet = :wallet
""")

_GET_BY_ID_SQL = text("""
    SELECT id, wallet, fid, display_name FROM users WHERE id = CAST(:user_id AS UUID)
""")

# Case-insensitive substring match on wallet, fid or stored display name.
# Backslash escapes LIKE wildcards in the pattern.
_SEARCH_SQL = text(r"""
    SELECT id, wallet, fid, display_name FROM users
    WHERE wallet ILIKE :pattern ESCAPE '\'
       OR fid ILIKE :pattern ESCAPE '\'
       OR display_name ILIKE :pattern ESCAPE '\'
    ORDER BY wallet ASC
    LIMIT :limit
""")

_UPDATE_FID_SQL = text("""
    UPDATE users SET fid = :fid, updated_at = NOW()
    WHERE wallet = :wallet
    RETURNING id, wallet, fid, display_name
""")


def _row_to_user(row: object) -> UserRecord:
    return UserRecord(
        id=str(row.id),  # type: ignore[attr-defined]
        wallet=row.wallet,  # type: ignore[attr-defined]
        fid=row.fid,  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
    )


class UserRepository:
    async def get_or_create(
        self, db: AsyncSession, wallet: str, fid: str | None = None
    ) -> UserRecord:
        result = await db.execute(
            _UPSERT_USER_SQL, {"wallet": normalize_wallet(wallet), "fid": fid}
        )
        return _row_to_user(result.fetchone())

    async def get_by_wallet(self, db: AsyncSession, wallet: str) -> UserRecord | None:
        result = await db.execute(_GET_BY_WALLET_SQL, {"wallet": normalize_wallet(wallet)})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def get_by_id(self, db: AsyncSession, user_id: str | uuid.UUID) -> UserRecord | None:
        result = await db.execute(_GET_BY_ID_SQL, {"user_id": str(user_id)})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def set_fid(self, db: AsyncSession, wallet: str, fid: str) -> UserRecord | None:
        result = await db.execute(
            _UPDATE_FID_SQL, {"wallet": normalize_wallet(wallet), "fid": fid}
        )
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def search(self, db: AsyncSession, query: str, limit: int) -> list[UserRecord]:
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        result = await db.execute(_SEARCH_SQL, {"pattern": f"%{escaped}%", "limit": limit})
        return [_row_to_user(row) for row in result.fetchall()]
