"""001 – Initial schema: departments, employees, leave engine tables, notifications.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["employee", "manager", "hr_admin", "system_admin"]),
    (
        "leave_type",
        ["annual", "sick", "emergency", "unpaid", "maternity", "paternity"],
    ),
    (
        "leave_status",
        ["pending_manager", "pending_hr", "approved", "rejected", "cancelled"],
    ),
    (
        "leave_action",
        [
            "submitted",
            "manager_approved",
            "manager_rejected",
            "hr_approved",
            "hr_rejected",
            "cancelled",
        ],
    ),
    ("notification_type", ["info", "action_required", "approval", "alert"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. departments ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE departments (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL UNIQUE,
            code        VARCHAR(20) UNIQUE,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            first_name     VARCHAR(100) NOT NULL,
            last_name      VARCHAR(100) NOT NULL,
            email          VARCHAR(255) NOT NULL UNIQUE,
            role           user_role NOT NULL DEFAULT 'employee',
            department_id  UUID REFERENCES departments(id),
            manager_id     UUID REFERENCES employees(id),
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_emp_manager ON employees(manager_id)")
    op.execute("CREATE INDEX idx_emp_dept_role ON employees(department_id, role)")

    # ── 3. leave_type_configs ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_type_configs (
            leave_type                  leave_type PRIMARY KEY,
            default_balance             INTEGER NOT NULL,
            auto_approve_enabled        BOOLEAN NOT NULL DEFAULT FALSE,
            auto_approve_threshold_days INTEGER NOT NULL DEFAULT 0,
            bypass_conflict_check       BOOLEAN NOT NULL DEFAULT FALSE,
            updated_at                  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 4. leave_balances ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_balances (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id  UUID NOT NULL REFERENCES employees(id),
            leave_type   leave_type NOT NULL,
            year         INTEGER NOT NULL,
            total_days   INTEGER NOT NULL DEFAULT 0,
            used_days    INTEGER NOT NULL DEFAULT 0,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (employee_id, leave_type, year)
        )
    """)

    # ── 5. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id      UUID NOT NULL REFERENCES employees(id),
            manager_id       UUID NOT NULL REFERENCES employees(id),
            leave_type       leave_type NOT NULL,
            start_date       DATE NOT NULL,
            end_date         DATE NOT NULL,
            number_of_days   INTEGER NOT NULL,
            fiscal_year      INTEGER NOT NULL,
            notes            TEXT,
            attachment_path  VARCHAR(500),
            status           leave_status NOT NULL DEFAULT 'pending_manager',
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            updated_at       TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_dates CHECK (end_date >= start_date)
        )
    """)
    op.execute("""
        CREATE INDEX ix_leave_requests_employee_year
            ON leave_requests(employee_id, leave_type, fiscal_year)
    """)
    op.execute("""
        CREATE INDEX ix_leave_requests_manager_status
            ON leave_requests(manager_id, status)
    """)

    # ── 6. leave_audit_logs ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_audit_logs (
            id                SERIAL PRIMARY KEY,
            leave_request_id  UUID NOT NULL REFERENCES leave_requests(id),
            actor_id          UUID NOT NULL REFERENCES employees(id),
            action            leave_action NOT NULL,
            resulting_status  leave_status NOT NULL,
            comment           VARCHAR(1000),
            created_at        TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX ix_leave_audit_request_created
            ON leave_audit_logs(leave_request_id, created_at)
    """)

    # ── 7. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            recipient_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            type         notification_type DEFAULT 'info',
            title        VARCHAR(200) NOT NULL,
            message      TEXT NOT NULL,
            is_read      BOOLEAN DEFAULT FALSE,
            created_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX idx_notif_recipient_read
            ON notifications(recipient_id, is_read)
    """)

    # ══════════════════════════════════════════════════════════════════════
    # SEED DATA
    # ══════════════════════════════════════════════════════════════════════

    # Leave policy (auto-approval off everywhere until HR opts in)
    op.execute("""
        INSERT INTO leave_type_configs (leave_type, default_balance) VALUES
            ('annual',    21),
            ('sick',       7),
            ('emergency',  7),
            ('unpaid',     7),
            ('maternity',  7),
            ('paternity',  7)
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "notifications",
        "leave_audit_logs",
        "leave_requests",
        "leave_balances",
        "leave_type_configs",
        "employees",
        "departments",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
