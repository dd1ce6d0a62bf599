"""SQLite-backed account store: users, sessions, organizations, products."""

import sqlite3
import logging
import uuid
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .models import User, Membership, ProductAccess

logger = logging.getLogger(__name__)

# Catalogue seeded by ``seed_products``
DEFAULT_PRODUCTS = [
    {
        "id": "prod_haba_casa",
        "name": "Haba Casa",
        "slug": "haba-casa",
        "description": "AI for physical environments. Homes, offices, and factories that manage themselves.",
        "icon": "🏠",
        "url": "https://ai.haba.casa",
    },
    {
        "id": "prod_ai_agency",
        "name": "The AI Agency",
        "slug": "ai-agency",
        "description": "Agents for operations. Support, scheduling, and workflows that run autonomously.",
        "icon": "🤖",
        "url": None,
    },
]


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: datetime) -> str:
    """UTC ISO-8601 text with fixed precision; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now() -> str:
    return _iso(datetime.now(timezone.utc))


class SQLiteAccountStore:
    """Relational lookups over the account tables."""

    def __init__(self, db_path: str = "data/edge_ai.db"):
        """
        Initialize SQLite account store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS "user" (
                id TEXT PRIMARY KEY,
                name TEXT,
                email TEXT NOT NULL UNIQUE,
                emailVerified INTEGER NOT NULL DEFAULT 0,
                createdAt TIMESTAMP NOT NULL,
                updatedAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS session (
                id TEXT PRIMARY KEY,
                token TEXT NOT NULL UNIQUE,
                userId TEXT NOT NULL REFERENCES "user"(id) ON DELETE CASCADE,
                expiresAt TIMESTAMP NOT NULL,
                createdAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS organization (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT UNIQUE,
                createdAt TIMESTAMP NOT NULL,
                updatedAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS member (
                id TEXT PRIMARY KEY,
                organizationId TEXT NOT NULL REFERENCES organization(id) ON DELETE CASCADE,
                userId TEXT NOT NULL REFERENCES "user"(id) ON DELETE CASCADE,
                role TEXT NOT NULL DEFAULT 'member',
                createdAt TIMESTAMP NOT NULL,
                updatedAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS product (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT UNIQUE,
                description TEXT,
                icon TEXT,
                url TEXT,
                active INTEGER NOT NULL DEFAULT 1,
                createdAt TIMESTAMP NOT NULL,
                updatedAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS product_subscription (
                id TEXT PRIMARY KEY,
                organizationId TEXT NOT NULL REFERENCES organization(id) ON DELETE CASCADE,
                productId TEXT NOT NULL REFERENCES product(id) ON DELETE CASCADE,
                plan TEXT NOT NULL DEFAULT 'free',
                status TEXT NOT NULL DEFAULT 'active',
                billingId TEXT,
                trialEndsAt TIMESTAMP,
                currentPeriodEnd TIMESTAMP,
                createdAt TIMESTAMP NOT NULL,
                updatedAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_member_user ON member(userId)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_subscription_org ON product_subscription(organizationId)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_session_token ON session(token)")

        conn.commit()
        conn.close()
        logger.info(f"Account store initialized at {self.db_path}")

    def _execute(self, sql: str, params: tuple = ()) -> int:
        conn = self._get_connection()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def _fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        conn = self._get_connection()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def _fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        conn = self._get_connection()
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()

    # --- writes ---

    def create_user(
        self,
        email: str,
        name: Optional[str] = None,
        user_id: Optional[str] = None,
        email_verified: bool = False
    ) -> User:
        """Insert a user row."""
        user_id = user_id or str(uuid.uuid4())
        now = _now()
        self._execute(
            """
            INSERT INTO "user" (id, name, email, emailVerified, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, name, email, int(email_verified), now, now)
        )
        return User(
            id=user_id,
            email=email,
            name=name,
            email_verified=email_verified,
            created_at=_parse_ts(now),
            updated_at=_parse_ts(now),
        )

    def create_session(self, user_id: str, token: str, expires_at: datetime) -> str:
        """Insert a session row and return its id."""
        session_id = str(uuid.uuid4())
        self._execute(
            """
            INSERT INTO session (id, token, userId, expiresAt, createdAt)
            VALUES (?, ?, ?, ?, ?)
            """,
            (session_id, token, user_id, _iso(expires_at), _now())
        )
        return session_id

    def create_organization(
        self,
        name: str,
        slug: Optional[str] = None,
        organization_id: Optional[str] = None
    ) -> str:
        """Insert an organization row and return its id."""
        organization_id = organization_id or f"org_{uuid.uuid4().hex[:12]}"
        now = _now()
        self._execute(
            """
            INSERT INTO organization (id, name, slug, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?)
            """,
            (organization_id, name, slug, now, now)
        )
        return organization_id

    def add_member(
        self,
        organization_id: str,
        user_id: str,
        role: str = "member",
        created_at: Optional[datetime] = None
    ) -> str:
        """Add a user to an organization and return the membership id."""
        member_id = f"member_{uuid.uuid4().hex[:12]}"
        created = _iso(created_at) if created_at else _now()
        self._execute(
            """
            INSERT INTO member (id, organizationId, userId, role, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (member_id, organization_id, user_id, role, created, created)
        )
        return member_id

    def create_product(
        self,
        name: str,
        slug: Optional[str] = None,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        url: Optional[str] = None,
        active: bool = True,
        product_id: Optional[str] = None
    ) -> str:
        """Insert a product row and return its id."""
        product_id = product_id or f"prod_{uuid.uuid4().hex[:12]}"
        now = _now()
        self._execute(
            """
            INSERT INTO product (id, name, slug, description, icon, url, active, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (product_id, name, slug, description, icon, url, int(active), now, now)
        )
        return product_id

    def create_subscription(
        self,
        organization_id: str,
        product_id: str,
        plan: str = "free",
        status: str = "active"
    ) -> str:
        """Subscribe an organization to a product and return the subscription id."""
        subscription_id = f"sub_{uuid.uuid4().hex[:12]}"
        now = _now()
        self._execute(
            """
            INSERT INTO product_subscription
            (id, organizationId, productId, plan, status, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (subscription_id, organization_id, product_id, plan, status, now, now)
        )
        return subscription_id

    def set_product_active(self, product_id: str, active: bool) -> bool:
        """
        Enable or disable a product.

        Returns:
            True if a product row was updated
        """
        updated = self._execute(
            "UPDATE product SET active = ?, updatedAt = ? WHERE id = ?",
            (int(active), _now(), product_id)
        )
        return updated > 0

    def seed_products(self) -> int:
        """Insert the default catalogue products that are missing. Returns the number added."""
        added = 0
        for product in DEFAULT_PRODUCTS:
            if self._fetchone("SELECT id FROM product WHERE id = ?", (product["id"],)):
                continue
            self.create_product(
                name=product["name"],
                slug=product["slug"],
                description=product["description"],
                icon=product["icon"],
                url=product["url"],
                product_id=product["id"],
            )
            added += 1
        if added:
            logger.info(f"Seeded {added} products")
        return added

    # --- lookups ---

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by id."""
        row = self._fetchone('SELECT * FROM "user" WHERE id = ?', (user_id,))
        if not row:
            return None
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            email_verified=bool(row["emailVerified"]),
            created_at=_parse_ts(row["createdAt"]),
            updated_at=_parse_ts(row["updatedAt"]),
        )

    def find_session_user(self, token: str, now: Optional[datetime] = None) -> Optional[User]:
        """Get the user owning an unexpired session token."""
        now = now or datetime.now(timezone.utc)
        row = self._fetchone(
            """
            SELECT u.* FROM session s
            JOIN "user" u ON u.id = s.userId
            WHERE s.token = ? AND s.expiresAt > ?
            """,
            (token, _iso(now))
        )
        if not row:
            return None
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            email_verified=bool(row["emailVerified"]),
        )

    def get_primary_membership(self, user_id: str) -> Optional[Membership]:
        """
        Get the organization membership used for a user's context.

        Users with several memberships get the earliest one (ties broken by
        membership id), so the choice is stable across calls.
        """
        row = self._fetchone(
            """
            SELECT m.id, m.organizationId, m.role, m.createdAt, o.name AS organizationName
            FROM member m
            JOIN organization o ON o.id = m.organizationId
            WHERE m.userId = ?
            ORDER BY m.createdAt ASC, m.id ASC
            LIMIT 1
            """,
            (user_id,)
        )
        if not row:
            return None
        return Membership(
            id=row["id"],
            organization_id=row["organizationId"],
            organization_name=row["organizationName"],
            role=row["role"],
            created_at=_parse_ts(row["createdAt"]),
        )

    def get_active_products(self, organization_id: str) -> List[ProductAccess]:
        """Active subscriptions to active products, by product name."""
        rows = self._fetchall(
            """
            SELECT p.id, p.name, ps.plan, ps.status
            FROM product p
            JOIN product_subscription ps ON p.id = ps.productId
            WHERE ps.organizationId = ? AND ps.status = 'active' AND p.active = 1
            ORDER BY p.name ASC
            """,
            (organization_id,)
        )
        return [
            ProductAccess(id=row["id"], name=row["name"], plan=row["plan"], status=row["status"])
            for row in rows
        ]

    # --- admin listings ---

    def list_users(self) -> List[Dict[str, Any]]:
        """All users, newest first."""
        rows = self._fetchall(
            """
            SELECT id, name, email, emailVerified, createdAt, updatedAt
            FROM "user"
            ORDER BY createdAt DESC
            """
        )
        return [
            {
                "id": row["id"],
                "name": row["name"],
                "email": row["email"],
                "emailVerified": bool(row["emailVerified"]),
                "createdAt": row["createdAt"],
                "updatedAt": row["updatedAt"],
            }
            for row in rows
        ]

    def list_organizations(self) -> List[Dict[str, Any]]:
        """All organizations with member counts, newest first."""
        rows = self._fetchall(
            """
            SELECT o.id, o.name, o.slug, o.createdAt, o.updatedAt,
                   COUNT(m.userId) AS memberCount
            FROM organization o
            LEFT JOIN member m ON o.id = m.organizationId
            GROUP BY o.id, o.name, o.slug, o.createdAt, o.updatedAt
            ORDER BY o.createdAt DESC
            """
        )
        return [
            {
                "id": row["id"],
                "name": row["name"],
                "slug": row["slug"],
                "createdAt": row["createdAt"],
                "updatedAt": row["updatedAt"],
                "memberCount": int(row["memberCount"] or 0),
            }
            for row in rows
        ]

    def list_products(self) -> List[Dict[str, Any]]:
        """All products, by name."""
        rows = self._fetchall(
            """
            SELECT id, name, slug, description, icon, url, active, createdAt, updatedAt
            FROM product
            ORDER BY name ASC
            """
        )
        return [
            {
                "id": row["id"],
                "name": row["name"],
                "slug": row["slug"],
                "description": row["description"],
                "icon": row["icon"],
                "url": row["url"],
                "active": bool(row["active"]),
                "createdAt": row["createdAt"],
                "updatedAt": row["updatedAt"],
            }
            for row in rows
        ]

    def list_subscriptions(self) -> List[Dict[str, Any]]:
        """All subscriptions with organization and product details, newest first."""
        rows = self._fetchall(
            """
            SELECT ps.id, ps.plan, ps.status, ps.createdAt, ps.updatedAt,
                   ps.billingId, ps.trialEndsAt, ps.currentPeriodEnd,
                   o.name AS organizationName, o.slug AS organizationSlug,
                   p.name AS productName, p.icon AS productIcon, p.slug AS productSlug
            FROM product_subscription ps
            JOIN organization o ON ps.organizationId = o.id
            JOIN product p ON ps.productId = p.id
            ORDER BY ps.createdAt DESC
            """
        )
        return [dict(row) for row in rows]
